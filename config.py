import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _optional_int(name: str, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in ("", "none", "off"):
        return None
    return int(raw)


class Config:
    # SQLite database file stored next to the app as parkslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "parkslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Header carrying the authenticated actor id, set by the upstream gateway
    ACTOR_HEADER = os.getenv("ACTOR_HEADER", "X-Actor-Id")

    # Cancellation policy: minutes after start a renter may still cancel (none = no limit)
    CANCEL_GRACE_MINUTES = _optional_int("CANCEL_GRACE_MINUTES", 60)

    # Booking window rules (none/0 disables a rule)
    BOOKING_MIN_DURATION_MINUTES = _optional_int("BOOKING_MIN_DURATION_MINUTES", 60)
    BOOKING_MAX_DURATION_HOURS = _optional_int("BOOKING_MAX_DURATION_HOURS", 24)
    BOOKING_MAX_ADVANCE_DAYS = _optional_int("BOOKING_MAX_ADVANCE_DAYS", 30)

    # Guarded insert: attempts on lock/serialization failure
    BOOKING_INSERT_MAX_ATTEMPTS = int(os.getenv("BOOKING_INSERT_MAX_ATTEMPTS", "2"))

    # Basic app settings
    DEBUG = False
