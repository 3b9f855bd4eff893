from datetime import datetime
from decimal import Decimal, InvalidOperation

from models import db
from models.slot import Slot, SLOT_ACTIVE, SLOT_INACTIVE
from reservations import availability, persistence
from reservations.errors import ActiveBookingsExist, NotOwner
from reservations.ledger import get_slot

EDITABLE_FIELDS = ("number", "category", "description", "rate_per_hour")
# pricing terms, frozen while a renter holds a live booking
GUARDED_FIELDS = ("rate_per_hour", "category")


def clean_rate(value):
    """None/"" means quote-required; anything else must be a positive amount."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("rate_per_hour must be a number")
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError("rate_per_hour must be a number")
    if not rate.is_finite() or rate <= 0:
        raise ValueError("rate_per_hour must be greater than 0")
    return rate.quantize(Decimal("0.01"))


def create_slot(owner_id: str, number: str, category=None, rate_per_hour=None, description=None, now=None) -> Slot:
    number = (number or "").strip()
    if not number:
        raise ValueError("number is required")

    slot = Slot(
        owner_id=owner_id,
        number=number,
        category=(category or "").strip() or None,
        description=(description or "").strip() or None,
        rate_per_hour=clean_rate(rate_per_hour),
        status=SLOT_ACTIVE,
    )
    if now is not None:
        slot.created_at = now
        slot.updated_at = now
    db.session.add(slot)
    db.session.commit()
    return slot


def _changed(slot: Slot, field: str, value) -> bool:
    current = getattr(slot, field)
    if field == "rate_per_hour" and current is not None:
        current = Decimal(current).quantize(Decimal("0.01"))
    return current != value


def update_slot_terms(slot_id, actor_id: str, changes: dict, now: datetime) -> Slot:
    slot = get_slot(slot_id)
    if slot.owner_id != actor_id:
        raise NotOwner("Only the slot owner may edit this slot")

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")

    cleaned = {}
    for field, value in changes.items():
        if field == "rate_per_hour":
            cleaned[field] = clean_rate(value)
        elif field == "number":
            value = (value or "").strip()
            if not value:
                raise ValueError("number cannot be empty")
            cleaned[field] = value
        else:
            cleaned[field] = (value or "").strip() or None

    guarded = [f for f in GUARDED_FIELDS if f in cleaned and _changed(slot, f, cleaned[f])]
    if guarded:
        # same per-slot lock as booking inserts, so no booking can slip in
        # between the count and the write
        persistence.lock_slot(slot.id)
        count = availability.count_active_bookings(slot.id, now)
        if count:
            db.session.rollback()
            raise ActiveBookingsExist(count)

    for field, value in cleaned.items():
        setattr(slot, field, value)
    slot.updated_at = now
    db.session.commit()
    return slot


def set_slot_status(slot_id, actor_id: str, active: bool, now: datetime) -> Slot:
    slot = get_slot(slot_id)
    if slot.owner_id != actor_id:
        raise NotOwner("Only the slot owner may change this slot")

    slot.status = SLOT_ACTIVE if active else SLOT_INACTIVE
    slot.updated_at = now
    db.session.commit()
    return slot


def list_slots(owner_id=None, include_inactive=False) -> list:
    q = Slot.query
    if owner_id:
        q = q.filter_by(owner_id=owner_id)
    if not include_inactive:
        q = q.filter_by(status=SLOT_ACTIVE)
    return q.order_by(Slot.number.asc()).limit(200).all()
