"""
Date helpers shared by the calendar aggregator and note sync.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from unforgotten.config import settings


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def local_today() -> date:
    """Today's date in the configured timezone."""
    return datetime.now(local_zone()).date()


def local_day(value) -> date:
    """
    Calendar day of a date or datetime.
    Aware datetimes are converted to the configured timezone first.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(local_zone())
        return value.date()
    return value


def to_local_naive(value: datetime) -> datetime:
    """Wall-clock time in the configured timezone, without tzinfo."""
    if value.tzinfo is not None:
        return value.astimezone(local_zone()).replace(tzinfo=None)
    return value


def start_of_day(value) -> datetime:
    """Naive local midnight for the day containing value."""
    return datetime.combine(local_day(value), time.min)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to timezone-naive UTC.
    SQLite and TIMESTAMP WITHOUT TIME ZONE columns expect naive datetimes.
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_months(month_start: date, months: int) -> date:
    """First day of the month `months` away from month_start."""
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_start(value) -> date:
    day = local_day(value)
    return day.replace(day=1)


def day_range(start: date, end: date):
    """Yield each day in [start, end] inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def to_aware_utc(dt: datetime) -> datetime:
    """Attach UTC to a naive UTC datetime; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
