from datetime import datetime, timedelta

from flask import current_app

from models.booking import ACTIVE_STATUSES
from reservations.errors import NotRenter, AlreadyFinalized, TooLateToCancel
from reservations.states import effective_status

DEFAULT_GRACE_MINUTES = 60


def grace_period():
    """
    Configured grace window after a booking's start, as a timedelta.
    None means renters may cancel at any time before the booking is final.
    """
    minutes = current_app.config.get("CANCEL_GRACE_MINUTES", DEFAULT_GRACE_MINUTES)
    if minutes is None:
        return None
    return timedelta(minutes=int(minutes))


def check_cancellation(booking, actor_id: str, now: datetime, grace) -> None:
    """
    Raises when the renter-initiated cancellation is not allowed.
    Rules run in order: ownership, state, then the grace window.
    """
    if booking.renter_id != actor_id:
        raise NotRenter()

    status = effective_status(booking, now)
    if status not in ACTIVE_STATUSES:
        raise AlreadyFinalized(f"Booking is already {status.lower()}", status=status)

    if grace is not None and now - booking.start_time > grace:
        minutes = int(grace.total_seconds() // 60)
        raise TooLateToCancel(
            f"Cancellation not allowed more than {minutes} minutes after start",
            grace_minutes=minutes,
        )
