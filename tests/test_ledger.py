from decimal import Decimal

import pytest

from models.booking import Booking, PENDING, CONFIRMED, COMPLETED
from reservations import ledger, catalog
from reservations.errors import (
    InvalidRange,
    PastBooking,
    SlotNotFound,
    SlotInactive,
    SlotConflict,
    BookingNotFound,
    NotOwner,
    WrongState,
)
from reservations.states import effective_status
from tests.conftest import NOW, OWNER, RENTER, at


def test_create_booking_is_pending_with_price(make_slot, book):
    slot = make_slot(rate="50")
    booking = book(slot, at(1), at(3), note="white hatchback")

    assert booking.id is not None
    assert booking.status == PENDING
    assert booking.renter_id == RENTER
    assert booking.total_price == Decimal("100.00")
    assert booking.hourly_rate == Decimal("50.00")
    assert booking.quote_required is False
    assert booking.note == "white hatchback"
    assert booking.created_at == NOW


def test_ninety_minute_booking_price(make_slot, book):
    slot = make_slot(rate="50")
    assert book(slot, at(1), at(2, 30)).total_price == Decimal("75.00")


def test_quote_required_slot_still_books(make_slot, book):
    slot = make_slot(rate=None)
    booking = book(slot, at(1), at(3))

    assert booking.status == PENDING
    assert booking.total_price is None
    assert booking.quote_required is True


def test_back_to_back_bookings_are_legal(make_slot, book):
    slot = make_slot()
    a = book(slot, at(1), at(2))
    b = book(slot, at(2), at(3), renter="renter-2")
    assert a.id != b.id


def test_overlapping_booking_conflicts(make_slot, book):
    slot = make_slot()
    book(slot, at(1), at(3))
    with pytest.raises(SlotConflict):
        book(slot, at(2), at(4), renter="renter-2")


def test_same_range_on_another_slot_is_fine(make_slot, book):
    first = make_slot(number="A-1")
    second = make_slot(number="A-2")
    book(first, at(1), at(3))
    assert book(second, at(1), at(3)).slot_id == second.id


def test_cancelled_booking_frees_the_range(make_slot, book):
    slot = make_slot()
    old = book(slot, at(1), at(3))
    ledger.cancel_booking(old.id, RENTER, NOW)

    again = book(slot, at(1), at(3), renter="renter-2")
    assert again.status == PENDING


def test_past_start_rejected(make_slot, book):
    slot = make_slot()
    with pytest.raises(PastBooking):
        book(slot, at(minutes=-5), at(5))


def test_reversed_range_rejected(make_slot, book):
    slot = make_slot()
    with pytest.raises(InvalidRange):
        book(slot, at(3), at(1))


def test_booking_window_rules(make_slot, book):
    slot = make_slot()
    with pytest.raises(InvalidRange, match="Minimum"):
        book(slot, at(1), at(1, 30))
    with pytest.raises(InvalidRange, match="Maximum"):
        book(slot, at(1), at(26))
    with pytest.raises(InvalidRange, match="advance"):
        book(slot, at(24 * 31), at(24 * 31 + 1))


def test_booking_window_rules_can_be_disabled(app, make_slot, book):
    app.config["BOOKING_MIN_DURATION_MINUTES"] = None
    slot = make_slot(rate="60")
    booking = book(slot, at(1), at(1, 15))
    assert booking.total_price == Decimal("15.00")


def test_unknown_slot(app):
    with pytest.raises(SlotNotFound):
        ledger.create_booking(999, RENTER, at(1), at(2), NOW)


def test_inactive_slot(make_slot, book):
    slot = make_slot()
    catalog.set_slot_status(slot.id, OWNER, False, NOW)
    with pytest.raises(SlotInactive):
        book(slot, at(1), at(2))


def test_validation_runs_before_slot_lookup(app):
    with pytest.raises(PastBooking):
        ledger.create_booking(999, RENTER, at(-2), at(2), NOW)


def test_confirm_by_owner(make_slot, book):
    slot = make_slot()
    booking = book(slot, at(1), at(2))

    confirmed = ledger.confirm_booking(booking.id, OWNER, at(0, 5))
    assert confirmed.status == CONFIRMED
    assert confirmed.confirmed_at == at(0, 5)


def test_confirm_requires_owner(make_slot, book):
    slot = make_slot()
    booking = book(slot, at(1), at(2))
    with pytest.raises(NotOwner):
        ledger.confirm_booking(booking.id, RENTER, NOW)


def test_confirm_only_from_pending(make_slot, book):
    slot = make_slot()
    booking = book(slot, at(1), at(2))
    ledger.confirm_booking(booking.id, OWNER, NOW)
    with pytest.raises(WrongState):
        ledger.confirm_booking(booking.id, OWNER, NOW)

    other = book(slot, at(3), at(4))
    ledger.cancel_booking(other.id, RENTER, NOW)
    with pytest.raises(WrongState):
        ledger.confirm_booking(other.id, OWNER, NOW)


def test_confirm_missing_booking(app):
    with pytest.raises(BookingNotFound):
        ledger.confirm_booking(12345, OWNER, NOW)


def test_completed_is_derived_after_end(make_slot, book):
    slot = make_slot()
    booking = book(slot, at(1), at(2))
    ledger.confirm_booking(booking.id, OWNER, NOW)

    assert effective_status(booking, at(1, 59)) == CONFIRMED
    assert effective_status(booking, at(2)) == COMPLETED
    # stored row is untouched by the read-time derivation
    assert booking.status == CONFIRMED


def test_complete_booking_transition(make_slot, book):
    slot = make_slot()
    booking = book(slot, at(1), at(2))

    with pytest.raises(WrongState):
        ledger.complete_booking(booking.id, at(3))  # still pending

    ledger.confirm_booking(booking.id, OWNER, NOW)
    with pytest.raises(WrongState):
        ledger.complete_booking(booking.id, at(1, 30))  # not ended yet

    done = ledger.complete_booking(booking.id, at(3))
    assert done.status == COMPLETED
    assert done.completed_at == at(3)


def test_complete_elapsed_bookings_sweep(make_slot, book):
    slot = make_slot()
    ended = book(slot, at(1), at(2))
    running = book(slot, at(2), at(5))
    pending = book(slot, at(5), at(6))
    for b in (ended, running):
        ledger.confirm_booking(b.id, OWNER, NOW)

    assert ledger.complete_elapsed_bookings(at(3)) == 1

    statuses = {b.id: b.status for b in Booking.query.all()}
    assert statuses == {ended.id: COMPLETED, running.id: CONFIRMED, pending.id: PENDING}


def test_price_snapshot_survives_rate_change(db, make_slot, book):
    slot = make_slot(rate="50")
    booking = book(slot, at(1), at(3))
    ledger.confirm_booking(booking.id, OWNER, NOW)
    ledger.complete_booking(booking.id, at(4))

    catalog.update_slot_terms(slot.id, OWNER, {"rate_per_hour": "80"}, at(4))

    db.session.expire_all()
    assert db.session.get(Booking, booking.id).total_price == Decimal("100.00")
    assert slot.rate_per_hour == Decimal("80.00")


def test_price_snapshot_survives_direct_catalog_write(db, make_slot, book):
    slot = make_slot(rate="50")
    booking = book(slot, at(1), at(3))

    slot.rate_per_hour = Decimal("80")
    db.session.commit()

    db.session.expire_all()
    assert db.session.get(Booking, booking.id).total_price == Decimal("100.00")


def test_owner_views_slot_bookings(make_slot, book):
    slot = make_slot()
    book(slot, at(3), at(4))
    book(slot, at(1), at(2), renter="renter-2")

    rows = ledger.bookings_for_slot(slot.id, OWNER)
    assert [b.start_time for b in rows] == [at(1), at(3)]
    with pytest.raises(NotOwner):
        ledger.bookings_for_slot(slot.id, RENTER)
