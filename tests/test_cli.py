from models.audit_log import AuditLog
from models.booking import Booking, COMPLETED
from models.slot import Slot
from reservations import ledger
from tests.conftest import NOW, OWNER, at


def test_complete_bookings_command(app, db, make_slot, book, monkeypatch):
    slot = make_slot()
    booking = book(slot, at(1), at(2))
    ledger.confirm_booking(booking.id, OWNER, NOW)
    monkeypatch.setattr("app.utc_now", lambda: at(3))

    result = app.test_cli_runner().invoke(args=["complete-bookings"])

    assert result.exit_code == 0
    assert "1 booking(s) completed" in result.output
    db.session.expire_all()
    assert db.session.get(Booking, booking.id).status == COMPLETED
    assert AuditLog.query.filter_by(action="BOOKING_COMPLETE_SWEEP").count() == 1


def test_create_slot_command(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["create-slot", "owner-9", "C-3", "--category", "uncovered"])
    assert result.exit_code == 0
    slot = Slot.query.filter_by(owner_id="owner-9").one()
    assert slot.quote_required

    bad = runner.invoke(args=["create-slot", "owner-9", "C-4", "--rate", "0"])
    assert bad.exit_code != 0
