from datetime import datetime

from models.booking import CONFIRMED, COMPLETED


def effective_status(booking, now: datetime) -> str:
    """Stored status, with confirmed bookings whose end has passed read as COMPLETED."""
    if booking.status == CONFIRMED and booking.end_time <= now:
        return COMPLETED
    return booking.status
