from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Dict, Optional

from app.modules.notifications.scheduling import local_now

QUIET_HOURS_COLUMNS = "quiet_hours_enabled, quiet_hours_start, quiet_hours_end, quiet_hours_weekdays_only"


@dataclass
class QuietHoursSettings:
    enabled: bool
    start: str  # "HH:MM"
    end: str  # "HH:MM"
    weekdays_only: bool = False

    @classmethod
    def from_profile(cls, profile: Optional[Dict[str, Any]]) -> Optional["QuietHoursSettings"]:
        if not profile or not profile.get("quiet_hours_enabled"):
            return None
        start = profile.get("quiet_hours_start")
        end = profile.get("quiet_hours_end")
        if not start or not end:
            return None
        return cls(
            enabled=True,
            start=str(start)[:5],
            end=str(end)[:5],
            weekdays_only=bool(profile.get("quiet_hours_weekdays_only")),
        )


def _parse_hhmm(value: str) -> time:
    hour, minute = value.split(":")[:2]
    return time(int(hour), int(minute))


def is_in_quiet_hours(settings: Optional[QuietHoursSettings], now: Optional[datetime] = None) -> bool:
    """True when the local (Romanian) time falls inside the user's quiet window.

    Windows with start > end span midnight (22:00-08:00). Start is inclusive,
    end exclusive. With weekdays_only, Saturday and Sunday are exempt.
    """
    if not settings or not settings.enabled:
        return False

    current = local_now(now)
    if settings.weekdays_only and current.isoweekday() in (6, 7):
        return False

    current_time = current.time().replace(second=0, microsecond=0)
    start = _parse_hhmm(settings.start)
    end = _parse_hhmm(settings.end)

    if start > end:
        return current_time >= start or current_time < end
    return start <= current_time < end


def next_available_time(settings: Optional[QuietHoursSettings], now: Optional[datetime] = None) -> Optional[datetime]:
    """Local datetime at which the current quiet window ends, or None when sending is allowed now."""
    if not is_in_quiet_hours(settings, now):
        return None

    current = local_now(now)
    start = _parse_hhmm(settings.start)
    end = _parse_hhmm(settings.end)

    available = current.replace(hour=end.hour, minute=end.minute, second=0, microsecond=0)
    if start > end and current.time() >= start:
        # Overnight window that started today ends tomorrow
        available += timedelta(days=1)
    return available
