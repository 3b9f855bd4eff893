from datetime import datetime, timedelta

import pytest

from app import create_app
from models import db as _db
from reservations import catalog, ledger

# fixed engine clock for every test
NOW = datetime(2026, 3, 2, 9, 0, 0)
OWNER = "owner-1"
RENTER = "renter-1"


def at(hours=0, minutes=0):
    """NOW shifted by the given offset."""
    return NOW + timedelta(hours=hours, minutes=minutes)


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'parkslot-test.db'}",
        "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30, "check_same_thread": False}},
        "CANCEL_GRACE_MINUTES": 60,
        "BOOKING_MIN_DURATION_MINUTES": 60,
        "BOOKING_MAX_DURATION_HOURS": 24,
        "BOOKING_MAX_ADVANCE_DAYS": 30,
        "BOOKING_INSERT_MAX_ATTEMPTS": 2,
    })
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_slot(app):
    def _make(rate="50", owner=OWNER, number="A-10", category="covered"):
        return catalog.create_slot(owner, number, category=category, rate_per_hour=rate, now=NOW)
    return _make


@pytest.fixture
def book(app):
    def _book(slot, start, end, renter=RENTER, now=NOW, note=None):
        return ledger.create_booking(slot.id, renter, start, end, now, note=note)
    return _book


@pytest.fixture
def frozen_clock(monkeypatch):
    """Pin the clock the HTTP layer reads."""
    def _freeze(value=NOW):
        monkeypatch.setattr("routes.booking.utc_now", lambda: value)
        monkeypatch.setattr("routes.slots.utc_now", lambda: value)
        return value
    _freeze()
    return _freeze


@pytest.fixture
def client(app, frozen_clock):
    return app.test_client()


def as_actor(actor_id):
    return {"X-Actor-Id": actor_id}
