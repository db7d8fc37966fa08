"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form SQLite hands back)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def expires_after(minutes: int, now: datetime | None = None) -> datetime:
    """Expiry timestamp `minutes` from now"""
    return (now or utcnow()) + timedelta(minutes=minutes)
