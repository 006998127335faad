"""
Date and time helpers.

SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
columns, so comparisons always go through ``as_utc``.
"""
import re
from datetime import date, datetime, timezone
from typing import Optional

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_date(value: str) -> Optional[date]:
    """
    Parse a strict ``YYYY-MM-DD`` string.

    Returns:
        The date, or None when the text is not in that exact format or is
        not a real calendar date.
    """
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value.strip()):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None
