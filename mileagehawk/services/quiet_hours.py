"""Timezone-aware quiet hours for subscriber notifications."""
import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def get_current_hour_in_timezone(tz_name: str) -> int:
    """Current hour (0-23) in an IANA timezone; UTC if the name is invalid."""
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Invalid timezone {tz_name!r}, falling back to UTC")
        tz = timezone.utc
    return datetime.now(tz).hour


def is_hour_in_quiet_range(hour: int, start: int, end: int) -> bool:
    """
    Whether ``hour`` falls in [start, end).

    A start after end wraps midnight (22 -> 7 means hour >= 22 or hour < 7).
    start == end disables quiet hours.
    """
    if start == end:
        return False
    if start > end:
        return hour >= start or hour < end
    return start <= hour < end


def is_in_quiet_hours(
    tz_name: Optional[str],
    quiet_start: Optional[int],
    quiet_end: Optional[int],
) -> bool:
    """False unless timezone, start and end are all configured."""
    if not tz_name or quiet_start is None or quiet_end is None:
        return False
    return is_hour_in_quiet_range(get_current_hour_in_timezone(tz_name), quiet_start, quiet_end)
