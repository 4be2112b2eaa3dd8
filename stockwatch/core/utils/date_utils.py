"""
Date utility functions.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Replaces deprecated datetime.utcnow() which is scheduled for removal in Python 3.14.
    See: https://docs.python.org/3/library/datetime.html#datetime.datetime.utcnow
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC tzinfo to naive datetimes.

    MongoDB returns naive datetimes unless the client is tz_aware, so values
    read back from the store are normalized before comparison or display.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
