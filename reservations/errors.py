VALIDATION = "validation"
CONFLICT = "conflict"
NOT_FOUND = "not_found"
AUTHORIZATION = "authorization"

_STATUS_BY_CATEGORY = {
    VALIDATION: 400,
    AUTHORIZATION: 403,
    NOT_FOUND: 404,
    CONFLICT: 409,
}


class BookingError(Exception):
    category = CONFLICT
    default_message = "Booking request rejected"

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    @property
    def http_status(self) -> int:
        return _STATUS_BY_CATEGORY[self.category]

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code, "category": self.category}
        payload.update(self.details)
        return payload


# ---------- validation ----------
class InvalidRange(BookingError):
    category = VALIDATION
    default_message = "end_time must be after start_time"


class PastBooking(BookingError):
    category = VALIDATION
    default_message = "Cannot book a time range that starts in the past"


# ---------- not found ----------
class SlotNotFound(BookingError):
    category = NOT_FOUND
    default_message = "Slot not found"


class BookingNotFound(BookingError):
    category = NOT_FOUND
    default_message = "Booking not found"


# ---------- authorization ----------
class NotOwner(BookingError):
    category = AUTHORIZATION
    default_message = "Only the slot owner may do this"


class NotRenter(BookingError):
    category = AUTHORIZATION
    default_message = "Only the renter may cancel this booking"


# ---------- conflict ----------
class SlotInactive(BookingError):
    default_message = "Slot is not active"


class SlotConflict(BookingError):
    default_message = "Slot is already booked for this time period"


class WrongState(BookingError):
    default_message = "Booking is not in a state that allows this"


class AlreadyFinalized(BookingError):
    default_message = "Booking is already cancelled or completed"


class TooLateToCancel(BookingError):
    default_message = "Cancellation window has passed"


class ActiveBookingsExist(BookingError):
    default_message = "Slot has active bookings"

    def __init__(self, count: int, message=None):
        super().__init__(
            message or f"Cannot change pricing terms while {count} active booking(s) exist",
            count=count,
        )
        self.count = count
