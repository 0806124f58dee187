"""Utility modules for MileageHawk."""

from mileagehawk.utils.dates import utc_now, start_of_utc_day, round_half_up

__all__ = ["utc_now", "start_of_utc_day", "round_half_up"]
