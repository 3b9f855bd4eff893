"""
Guarded booking insert.

This is the only code path that writes a new booking row, and it is what keeps
two active bookings of one slot from overlapping when requests race. The
advisory check in reservations.availability is not enough on its own.

Two layers back each other up:

* PostgreSQL carries the ``no_overlap_active`` exclusion constraint on
  ``bookings``; a losing concurrent insert fails with an IntegrityError.
* On every backend the insert runs in one transaction that first bumps
  ``slots.booking_version`` (a row write lock on PostgreSQL/MySQL, the database
  write lock on SQLite), then repeats the overlap query with a locking read,
  then inserts. A second writer for the same slot blocks on the UPDATE and sees
  the first writer's row once it gets through.

Lock and serialization failures roll back and are retried a bounded number of
times (BOOKING_INSERT_MAX_ATTEMPTS). Any overlap found here is reported as
SlotConflict, exactly like the advisory check.
"""
from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError

from models import db
from models.slot import Slot
from models.booking import Booking
from reservations.availability import overlapping_query
from reservations.errors import SlotConflict
from reservations.time_range import TimeRange

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}
_RETRYABLE_MESSAGES = ("database is locked", "deadlock", "could not serialize")


def is_serialization_failure(exc: OperationalError) -> bool:
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    text = str(orig if orig is not None else exc).lower()
    return any(msg in text for msg in _RETRYABLE_MESSAGES)


def lock_slot(slot_id: int) -> None:
    """Take the per-slot write lock for the current transaction."""
    db.session.execute(
        update(Slot)
        .where(Slot.id == slot_id)
        .values(booking_version=Slot.booking_version + 1, updated_at=Slot.updated_at)
        .execution_options(synchronize_session=False)
    )


def _insert_once(booking: Booking) -> Booking:
    lock_slot(booking.slot_id)

    time_range = TimeRange(booking.start_time, booking.end_time)
    clash = overlapping_query(booking.slot_id, time_range).with_for_update().first()
    if clash is not None:
        db.session.rollback()
        raise SlotConflict()

    db.session.add(booking)
    try:
        db.session.commit()
    except IntegrityError:
        # exclusion constraint: another request won the race
        db.session.rollback()
        raise SlotConflict()
    return booking


def insert_booking(booking: Booking) -> Booking:
    max_attempts = max(1, int(current_app.config.get("BOOKING_INSERT_MAX_ATTEMPTS", 2)))

    attempt = 1
    while True:
        try:
            return _insert_once(booking)
        except OperationalError as exc:
            db.session.rollback()
            booking.id = None
            if attempt >= max_attempts or not is_serialization_failure(exc):
                raise
            current_app.logger.warning(
                "booking insert for slot %s hit a lock/serialization failure, retrying (%s/%s)",
                booking.slot_id, attempt, max_attempts,
            )
            attempt += 1
