"""UTC datetime utilities and stats reset boundaries."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def daily_boundary(now: datetime, tz_name: str, reset_hour: int) -> datetime:
    """Most recent daily reset instant at or before `now`, returned in UTC.

    The day rolls over at `reset_hour`:00 local time in `tz_name`.
    """
    tz = ZoneInfo(tz_name)
    local = now.astimezone(tz)
    boundary = local.replace(hour=reset_hour, minute=0, second=0, microsecond=0)
    if local < boundary:
        boundary -= timedelta(days=1)
    return boundary.astimezone(timezone.utc)


def weekly_boundary(
    daily: datetime, tz_name: str, reset_hour: int, reset_weekday: int = 0
) -> datetime:
    """Most recent weekly reset at or before the given daily boundary (UTC)."""
    tz = ZoneInfo(tz_name)
    local = daily.astimezone(tz)
    distance = (local.weekday() - reset_weekday) % 7
    boundary = (local - timedelta(days=distance)).replace(
        hour=reset_hour, minute=0, second=0, microsecond=0
    )
    return boundary.astimezone(timezone.utc)
