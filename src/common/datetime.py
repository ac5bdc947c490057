"""Datetime utilities."""

from datetime import datetime, timezone


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value) -> datetime:
    """Parse datetime from ISO string or return as-is if already datetime."""
    if value is None:
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        return value
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def parse_optional_datetime(value) -> datetime | None:
    """Like parse_datetime, but missing or unparsable values stay None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return parse_datetime(str(value))
    except ValueError:
        return None


def age_seconds(timestamp: datetime | None, now: datetime) -> float | None:
    """Seconds elapsed from timestamp to now (negative for future timestamps)."""
    if timestamp is None:
        return None
    return (ensure_utc(now) - ensure_utc(timestamp)).total_seconds()
