"""Timezone-aware datetime and calendar-date utilities.

All datetime values use UTC for storage and comparison. Calendar dates are
plain ``datetime.date`` objects serialized as ``YYYY-MM-DD``.
"""

from datetime import date, datetime, timezone

from climb_you.shared.constants import WEEKDAY_NAMES


def utc_now() -> datetime:
    """Get current datetime with UTC timezone.

    Always use this function instead of datetime.utcnow() or datetime.now().
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Get the current calendar date in UTC."""
    return utc_now().date()


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure datetime has UTC timezone.

    If datetime is naive (no timezone), assumes UTC and adds it.
    If datetime has different timezone, converts to UTC.

    Args:
        dt: Datetime to ensure is UTC

    Returns:
        Datetime with UTC timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume it's UTC and add timezone
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def datetime_to_iso(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


def iso_to_datetime(iso_string: str | None) -> datetime | None:
    """Parse ISO 8601 string to datetime.

    Args:
        iso_string: ISO 8601 formatted string

    Returns:
        Datetime with UTC timezone, or None if input is None
    """
    if iso_string is None:
        return None

    dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
    return ensure_utc(dt)


def parse_date(value: date | datetime | str) -> date:
    """Coerce a ``YYYY-MM-DD`` string, date or datetime to a date."""
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def weekday_name(value: date) -> str:
    """Short weekday name (Mon..Sun) for a date."""
    return WEEKDAY_NAMES[value.weekday()]
