from datetime import datetime

from sqlalchemy import and_

from models import db
from models.booking import Booking, ACTIVE_STATUSES, CONFIRMED
from reservations.time_range import TimeRange


def overlapping_query(slot_id: int, time_range: TimeRange, exclude_booking_id=None):
    """Active bookings on the slot whose range overlaps [start, end)."""
    q = Booking.query.filter(
        Booking.slot_id == slot_id,
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.start_time < time_range.end,
        Booking.end_time > time_range.start,
    )
    if exclude_booking_id is not None:
        q = q.filter(Booking.id != exclude_booking_id)
    return q


def find_conflicts(slot_id: int, time_range: TimeRange) -> list:
    """
    Advisory check only. It gives a fast, friendly rejection in the common
    case; the guarded insert in reservations.persistence is what actually
    prevents double booking.
    """
    return overlapping_query(slot_id, time_range).order_by(Booking.start_time.asc()).all()


def count_active_bookings(slot_id: int, now: datetime) -> int:
    # confirmed bookings that have ended read as COMPLETED, sweep or not
    return (
        db.session.query(db.func.count(Booking.id))
        .filter(
            Booking.slot_id == slot_id,
            Booking.status.in_(ACTIVE_STATUSES),
            ~and_(Booking.status == CONFIRMED, Booking.end_time <= now),
        )
        .scalar()
    ) or 0
