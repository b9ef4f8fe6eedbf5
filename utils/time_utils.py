"""
utils/time_utils.py

Purpose: Time and window helpers

- Naive-UTC "now" (matches what Motor returns for stored datetimes)
- Rolling window boundaries (last N days)
- Whole-day differences used by every "days since" metric
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_ago(days: float, now: Optional[datetime] = None) -> datetime:
    """
    Start of a rolling window ending at `now`.
    """
    return (now or utcnow()) - timedelta(days=days)


def days_since(moment: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """
    Whole days elapsed since `moment`, rounded down. None when there is no moment.
    """
    if moment is None:
        return None
    elapsed = (now or utcnow()) - moment
    return int(elapsed.total_seconds() // SECONDS_PER_DAY)


def to_naive_utc(value: datetime) -> datetime:
    """
    Normalizes an aware datetime to naive UTC; naive values are assumed UTC already.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def format_day(dt: datetime) -> str:
    """
    Formats a datetime as an ISO calendar day (YYYY-MM-DD).
    """
    return dt.strftime("%Y-%m-%d")
