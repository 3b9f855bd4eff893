from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import update

from models import db
from models.slot import Slot
from models.booking import (
    Booking,
    PENDING,
    CONFIRMED,
    CANCELLED,
    COMPLETED,
    ACTIVE_STATUSES,
)
from reservations import availability, cancellation, pricing, persistence
from reservations.errors import (
    InvalidRange,
    SlotNotFound,
    SlotInactive,
    SlotConflict,
    BookingNotFound,
    NotOwner,
    WrongState,
    AlreadyFinalized,
)
from reservations.states import effective_status
from reservations.time_range import TimeRange, validate


def get_slot(slot_id) -> Slot:
    slot = db.session.get(Slot, slot_id) if slot_id is not None else None
    if slot is None:
        raise SlotNotFound()
    return slot


def get_booking(booking_id) -> Booking:
    booking = db.session.get(Booking, booking_id) if booking_id is not None else None
    if booking is None:
        raise BookingNotFound()
    return booking


def _enforce_booking_window(time_range: TimeRange, now: datetime) -> None:
    cfg = current_app.config
    length = time_range.end - time_range.start

    min_minutes = cfg.get("BOOKING_MIN_DURATION_MINUTES")
    if min_minutes and length < timedelta(minutes=min_minutes):
        raise InvalidRange(
            f"Minimum booking duration is {min_minutes} minute(s)",
            min_duration_minutes=min_minutes,
        )

    max_hours = cfg.get("BOOKING_MAX_DURATION_HOURS")
    if max_hours and length > timedelta(hours=max_hours):
        raise InvalidRange(
            f"Maximum booking duration is {max_hours} hour(s)",
            max_duration_hours=max_hours,
        )

    max_days = cfg.get("BOOKING_MAX_ADVANCE_DAYS")
    if max_days and time_range.start - now > timedelta(days=max_days):
        raise InvalidRange(
            f"Cannot book more than {max_days} day(s) in advance",
            max_advance_days=max_days,
        )


def create_booking(slot_id, renter_id: str, start: datetime, end: datetime, now: datetime, note=None) -> Booking:
    time_range = validate(start, end, now)
    _enforce_booking_window(time_range, now)

    slot = get_slot(slot_id)
    if not slot.is_active:
        raise SlotInactive(f"Slot is currently {slot.status.lower()}", status=slot.status)

    # advisory; the guarded insert below re-checks under lock
    if availability.find_conflicts(slot.id, time_range):
        raise SlotConflict()

    price = pricing.quote(slot.rate_per_hour, time_range)

    booking = Booking(
        slot_id=slot.id,
        renter_id=renter_id,
        start_time=time_range.start,
        end_time=time_range.end,
        hourly_rate=price.hourly_rate,
        total_price=price.total,
        status=PENDING,
        note=note,
        created_at=now,
        updated_at=now,
    )
    return persistence.insert_booking(booking)


def _transition(booking: Booking, from_statuses, **values) -> bool:
    """
    Single-row conditional status write. Returns False when the row was no
    longer in one of ``from_statuses`` (a concurrent request moved it first).
    """
    result = db.session.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.status.in_(from_statuses))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        db.session.refresh(booking)
        return False
    db.session.commit()
    db.session.refresh(booking)
    return True


def _already_final(booking: Booking, now: datetime) -> AlreadyFinalized:
    status = effective_status(booking, now)
    return AlreadyFinalized(f"Booking is already {status.lower()}", status=status)


def confirm_booking(booking_id, actor_id: str, now: datetime) -> Booking:
    booking = get_booking(booking_id)
    if booking.slot.owner_id != actor_id:
        raise NotOwner("Only the slot owner may confirm this booking")

    if booking.status != PENDING:
        raise WrongState(f"Booking status must be PENDING, got {booking.status}", status=booking.status)

    if not _transition(booking, (PENDING,), status=CONFIRMED, confirmed_at=now, updated_at=now):
        raise WrongState(f"Booking status must be PENDING, got {booking.status}", status=booking.status)
    return booking


def cancel_booking(booking_id, actor_id: str, now: datetime, reason=None) -> Booking:
    booking = get_booking(booking_id)
    cancellation.check_cancellation(booking, actor_id, now, cancellation.grace_period())

    if not _mark_cancelled(booking, actor_id, now, reason):
        raise _already_final(booking, now)
    return booking


def owner_cancel_booking(booking_id, actor_id: str, now: datetime, reason=None) -> Booking:
    """
    Slot owner withdraws a renter's booking. Separate capability from the
    renter's cancel_booking: owner authorization, no grace window.
    """
    booking = get_booking(booking_id)
    if booking.slot.owner_id != actor_id:
        raise NotOwner("Only the slot owner may cancel this booking")

    if effective_status(booking, now) not in ACTIVE_STATUSES:
        raise _already_final(booking, now)

    if not _mark_cancelled(booking, actor_id, now, reason or "Owner cancellation"):
        raise _already_final(booking, now)
    return booking


def _mark_cancelled(booking: Booking, actor_id: str, now: datetime, reason) -> bool:
    # plain status write: cancelling can never create an overlap
    return _transition(
        booking,
        ACTIVE_STATUSES,
        status=CANCELLED,
        cancelled_at=now,
        cancelled_by=actor_id,
        cancel_reason=reason[:120] if reason else None,
        updated_at=now,
    )


def complete_booking(booking_id, now: datetime) -> Booking:
    booking = get_booking(booking_id)
    if booking.status != CONFIRMED or booking.end_time > now:
        raise WrongState("Only confirmed bookings that have ended can be completed", status=booking.status)

    if not _transition(booking, (CONFIRMED,), status=COMPLETED, completed_at=now, updated_at=now):
        raise WrongState(f"Booking status must be CONFIRMED, got {booking.status}", status=booking.status)
    return booking


def complete_elapsed_bookings(now: datetime) -> int:
    """Store COMPLETED for every confirmed booking whose end has passed."""
    result = db.session.execute(
        update(Booking)
        .where(Booking.status == CONFIRMED, Booking.end_time <= now)
        .values(status=COMPLETED, completed_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    return result.rowcount or 0


def check_slot_editable(slot_id, now: datetime) -> int:
    """Number of active bookings that block pricing-term edits on the slot."""
    slot = get_slot(slot_id)
    return availability.count_active_bookings(slot.id, now)


def bookings_for_renter(renter_id: str, status=None) -> list:
    q = Booking.query.filter_by(renter_id=renter_id)
    if status:
        q = q.filter_by(status=status)
    return q.order_by(Booking.start_time.desc()).all()


def bookings_for_slot(slot_id, actor_id: str) -> list:
    slot = get_slot(slot_id)
    if slot.owner_id != actor_id:
        raise NotOwner("Only the slot owner may view its bookings")
    return Booking.query.filter_by(slot_id=slot.id).order_by(Booking.start_time.asc()).all()
