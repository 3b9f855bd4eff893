from collections import namedtuple
from datetime import datetime
from decimal import Decimal

from reservations.errors import InvalidRange, PastBooking

_SECONDS_PER_HOUR = Decimal(3600)


class TimeRange(namedtuple("TimeRange", ["start", "end"])):
    """Half-open interval [start, end)."""

    __slots__ = ()

    def overlaps(self, other: "TimeRange") -> bool:
        return overlaps(self, other)

    @property
    def duration_hours(self) -> Decimal:
        return duration_hours(self)


def validate(start: datetime, end: datetime, now: datetime) -> TimeRange:
    if start >= end:
        raise InvalidRange()
    if start < now:
        raise PastBooking()
    return TimeRange(start, end)


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    # shared endpoints are not an overlap, back-to-back bookings are legal
    return a.start < b.end and b.start < a.end


def duration_hours(time_range: TimeRange) -> Decimal:
    delta = time_range.end - time_range.start
    # integer microseconds keep the division exact
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    return Decimal(micros) / Decimal(1_000_000) / _SECONDS_PER_HOUR
