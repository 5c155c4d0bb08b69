"""
Standardized Date/Time Handling Utilities

CRITICAL RULES:
- All timestamps handled by the engine are timezone-aware UTC
- Naive datetimes coming from storage are assumed to already be UTC
- Never compare naive and aware datetimes directly
"""

import logging
from datetime import datetime, date, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC

    Args:
        dt: Naive (assumed UTC) or aware datetime

    Returns:
        Timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def is_in_future(dt: datetime, now: Optional[datetime] = None) -> bool:
    """Check whether a timestamp lies after the processing time"""
    reference = to_utc(now) if now is not None else now_utc()
    return to_utc(dt) > reference


def days_since(start: datetime, end: datetime) -> int:
    """
    Whole elapsed days between two datetimes

    Partial days are truncated, so 2 days 23 hours counts as 2.
    """
    delta = to_utc(end) - to_utc(start)
    return delta.days


def weekdays_since(start: datetime, end: datetime) -> int:
    """
    Count weekdays (Mon-Fri) after start's calendar day, up to and including end's

    Used by relaxed weekend mode, where Saturdays and Sundays don't count
    towards inactivity.
    """
    current: date = to_utc(start).date()
    end_date: date = to_utc(end).date()

    weekdays = 0
    while current < end_date:
        current += timedelta(days=1)
        if current.weekday() < 5:
            weekdays += 1

    return weekdays


def add_weekdays(start: datetime, count: int) -> datetime:
    """Advance a datetime by count weekdays, skipping weekends"""
    current = to_utc(start)
    added = 0
    while added < count:
        current += timedelta(days=1)
        if current.weekday() < 5:
            added += 1
    return current
