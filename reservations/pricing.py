from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

from reservations.time_range import TimeRange, duration_hours

CENT = Decimal("0.01")

PriceQuote = namedtuple("PriceQuote", ["total", "hourly_rate", "quote_required"])


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() avoids carrying binary float noise into the amount
    return Decimal(str(value))


def quote(rate_per_hour, time_range: TimeRange) -> PriceQuote:
    """
    Price a validated range for a slot.

    A slot without a rate is a quote-required slot: the booking still goes
    ahead, only without a price. That is a pricing mode, not an error.
    """
    if rate_per_hour is None:
        return PriceQuote(total=None, hourly_rate=None, quote_required=True)

    rate = _as_decimal(rate_per_hour)
    if rate <= 0:
        raise ValueError("rate_per_hour must be greater than 0")

    total = (rate * duration_hours(time_range)).quantize(CENT, rounding=ROUND_HALF_UP)
    # a priced booking never rounds down to free
    total = max(total, CENT)
    return PriceQuote(total=total, hourly_rate=rate.quantize(CENT), quote_required=False)
