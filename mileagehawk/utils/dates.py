"""Date and rounding helpers shared by the pipeline services."""
import math
from datetime import date, datetime, time, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (how timestamps are stored)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_utc_day(day: Optional[date] = None) -> datetime:
    """Midnight UTC of ``day`` (today if omitted), naive."""
    if day is None:
        day = utc_now().date()
    return datetime.combine(day, time.min)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero for positives, unlike Python's banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
