"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes
    (SQLite test databases hand back naive values).

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 string into a UTC-aware datetime.

    Accepts a trailing 'Z' (JavaScript toISOString output) and date-only
    strings, which are taken as midnight UTC.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return ensure_utc(parsed)  # type: ignore[return-value]


def parse_iso_date(value: str) -> date:
    """Parse an ISO-8601 date (or datetime, truncated to its date)."""
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return parse_iso_datetime(text).date()


def isoformat_utc(dt: datetime | None) -> str | None:
    """Serialize a datetime as ISO-8601 UTC, or None."""
    normalized = ensure_utc(dt)
    return normalized.isoformat() if normalized else None
