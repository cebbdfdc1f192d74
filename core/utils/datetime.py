"""Datetime utilities for shift and calendar-month arithmetic."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def add_hours(dt: datetime, hours: float) -> datetime:
    """
    Add hours to a datetime.

    Args:
        dt: Datetime
        hours: Number of hours to add (can be negative or fractional)

    Returns:
        New datetime
    """
    return dt + timedelta(hours=hours)


def hours_between(start: datetime, end: datetime) -> float:
    """
    Calculate number of hours between two datetimes.

    Args:
        start: Start datetime
        end: End datetime

    Returns:
        Number of hours (can be fractional or negative)
    """
    delta = end - start
    return delta.total_seconds() / 3600


def to_local(dt: datetime, tz_name: str) -> datetime:
    """Convert an aware datetime into the named timezone."""
    return ensure_utc(dt).astimezone(ZoneInfo(tz_name))


def month_of(dt: datetime, tz_name: str) -> tuple[int, int]:
    """Return the (year, month) a moment falls into in the given timezone."""
    local = to_local(dt, tz_name)
    return local.year, local.month


def validate_month(year: int, month: int) -> None:
    """Raise ValueError for a month outside 1..12 or a nonsensical year."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    if not 1970 <= year <= 9998:
        raise ValueError(f"Year out of range: {year}")


def next_month(year: int, month: int) -> tuple[int, int]:
    """The calendar month following (year, month)."""
    if month == 12:
        return year + 1, 1
    return year, month + 1


def month_bounds(
    year: int, month: int, tz_name: str
) -> tuple[datetime, datetime]:
    """
    UTC bounds [start, end) of a calendar month in the given timezone.

    Args:
        year: Calendar year
        month: Calendar month (1-12)
        tz_name: IANA timezone name the month is interpreted in

    Returns:
        Tuple of aware UTC datetimes
    """
    validate_month(year, month)
    tz = ZoneInfo(tz_name)
    end_year, end_month = next_month(year, month)
    start = datetime(year, month, 1, tzinfo=tz)
    end = datetime(end_year, end_month, 1, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def is_month_after(
    year: int, month: int, reference: Optional[tuple[int, int]]
) -> bool:
    """True if (year, month) lies strictly after the reference month."""
    if reference is None:
        return False
    return (year, month) > reference
