from .errors import (
    BookingError,
    InvalidRange,
    PastBooking,
    SlotNotFound,
    SlotInactive,
    SlotConflict,
    BookingNotFound,
    NotOwner,
    NotRenter,
    WrongState,
    AlreadyFinalized,
    TooLateToCancel,
    ActiveBookingsExist,
)
from .time_range import TimeRange
from .pricing import PriceQuote
