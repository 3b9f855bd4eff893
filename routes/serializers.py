from reservations.states import effective_status


def money(value):
    return f"{value:.2f}" if value is not None else None


def _iso(value):
    return value.isoformat() if value else None


def booking_to_dict(b, now):
    return {
        "id": b.id,
        "slot_id": b.slot_id,
        "renter_id": b.renter_id,
        "start_time": b.start_time.isoformat(),
        "end_time": b.end_time.isoformat(),
        "status": effective_status(b, now),
        "hourly_rate": money(b.hourly_rate),
        "total_price": money(b.total_price),
        "quote_required": b.quote_required,
        "note": b.note,
        "created_at": _iso(b.created_at),
        "updated_at": _iso(b.updated_at),
        "confirmed_at": _iso(b.confirmed_at),
        "cancelled_at": _iso(b.cancelled_at),
        "cancel_reason": b.cancel_reason,
    }


def slot_to_dict(s):
    return {
        "id": s.id,
        "owner_id": s.owner_id,
        "number": s.number,
        "category": s.category,
        "description": s.description,
        "rate_per_hour": money(s.rate_per_hour),
        "quote_required": s.quote_required,
        "status": s.status,
    }
