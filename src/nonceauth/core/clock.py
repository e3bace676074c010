"""UTC time helpers shared by entities and repositories."""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from SQLite as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def expiry_from(created_at: datetime, ttl: timedelta) -> datetime:
    """Expiry timestamp for a record created at ``created_at``."""
    return as_utc(created_at) + ttl
