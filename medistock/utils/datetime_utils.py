"""
Common date/time helpers.

Storage: all timestamps are stored in UTC. SQLite hands them back naive, so
anything read from the database goes through as_utc() before comparison.
"""

from datetime import datetime, timedelta, timezone


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.
    If dt is naive, we treat it as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """
    Get current UTC datetime.
    """
    return datetime.now(timezone.utc)


def expiry_from(start: datetime, ttl_minutes: int) -> datetime:
    return as_utc(start) + timedelta(minutes=ttl_minutes)


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """
    A claim is expired once now is strictly past expires_at.
    """
    return as_utc(now) > as_utc(expires_at)


def format_local(dt: datetime | None) -> str:
    """Short 'YYYY-MM-DD HH:MM UTC' label for receipts."""
    if dt is None:
        return "N/A"
    return as_utc(dt).strftime("%Y-%m-%d %H:%M UTC")
