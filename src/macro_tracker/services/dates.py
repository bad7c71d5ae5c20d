"""Calendar helpers bound to the canonical timezone."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo


def today_in(timezone_name: str, now: datetime | None = None) -> date:
    """Return the current date in the given timezone."""
    current = now or datetime.now(tz=UTC)
    return current.astimezone(ZoneInfo(timezone_name)).date()


def entry_day(timestamp: datetime, timezone_name: str) -> date:
    """Return the calendar date an entry belongs to."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(ZoneInfo(timezone_name)).date()


def timestamp_for_day(
    day: date, timezone_name: str, now: datetime | None = None
) -> datetime:
    """Return a timestamp that falls on ``day`` in the canonical timezone.

    Logging against today uses the current instant. Logging against another
    date keeps the current wall-clock time but moves it onto that date.
    """
    tz = ZoneInfo(timezone_name)
    current = (now or datetime.now(tz=UTC)).astimezone(tz)
    if current.date() == day:
        return current
    return datetime.combine(day, current.timetz())


def days_ending(end: date, count: int) -> list[date]:
    """Return ``count`` consecutive dates ending on ``end``, oldest first."""
    return [end - timedelta(days=offset) for offset in range(count - 1, -1, -1)]


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD string."""
    return date.fromisoformat(value)
