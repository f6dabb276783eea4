"""
Date rules for reminder notifications.

All dates are calendar dates in the configured local timezone
(Europe/Bucharest): the daily run happens at 09:00 local time and
"7 days before expiry" means seven calendar days, not 168 hours.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from app.config.settings import settings


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def local_now(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(local_tz())


def local_today(now: Optional[datetime] = None) -> date:
    return local_now(now).date()


def parse_date(value) -> date:
    """Accept a date, a datetime or an ISO string (date or timestamp)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def normalize_intervals(intervals: Optional[Iterable[int]]) -> List[int]:
    """Distinct non-negative offsets, largest first."""
    if not intervals:
        return []
    return sorted({int(i) for i in intervals if int(i) >= 0}, reverse=True)


def days_until_expiry(expiry_date, today: date) -> int:
    return (parse_date(expiry_date) - today).days


def is_notification_day(intervals: Optional[Iterable[int]], days_until: int) -> bool:
    return days_until in normalize_intervals(intervals)


def next_notification_date(expiry_date, intervals: Optional[Iterable[int]], days_until: int) -> Optional[date]:
    """Date of the next interval strictly after the current one, or None when this was the last."""
    for interval in normalize_intervals(intervals):
        if interval < days_until:
            return parse_date(expiry_date) - timedelta(days=interval)
    return None


def initial_notification_date(expiry_date, intervals: Optional[Iterable[int]], today: date) -> Optional[date]:
    """First notification slot that is not in the past, used when a reminder is created or edited."""
    days_until = days_until_expiry(expiry_date, today)
    for interval in normalize_intervals(intervals):
        if interval <= days_until:
            return parse_date(expiry_date) - timedelta(days=interval)
    return None


def urgency_status(days_until: int) -> str:
    if days_until < 0:
        return "expired"
    if days_until <= 3:
        return "urgent"
    if days_until <= 7:
        return "warning"
    return "normal"
