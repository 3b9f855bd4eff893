from datetime import datetime, timezone


def utc_now() -> datetime:
    # naive UTC, matching how every DateTime column is stored
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso(dt_str: str) -> datetime:
    # Expect ISO format like "2026-01-20T18:00:00" or "2026-01-20T18:00:00+05:45"
    if not isinstance(dt_str, str) or not dt_str.strip():
        raise ValueError("datetime must be an ISO 8601 string")
    value = dt_str.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(value))
