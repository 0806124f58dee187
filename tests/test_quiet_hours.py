"""Tests for quiet-hours evaluation."""
import logging

import pytest

from mileagehawk.services import quiet_hours
from mileagehawk.services.quiet_hours import (
    get_current_hour_in_timezone,
    is_hour_in_quiet_range,
    is_in_quiet_hours,
)


class TestIsHourInQuietRange:
    @pytest.mark.parametrize("hour,expected", [
        (22, True),
        (23, True),
        (0, True),
        (6, True),
        (7, False),  # end is exclusive
        (12, False),
        (21, False),
    ])
    def test_range_wrapping_midnight(self, hour, expected):
        assert is_hour_in_quiet_range(hour, 22, 7) is expected

    @pytest.mark.parametrize("hour,expected", [(0, False), (1, True), (5, True), (6, False)])
    def test_range_within_one_day(self, hour, expected):
        assert is_hour_in_quiet_range(hour, 1, 6) is expected

    def test_equal_start_and_end_disables(self):
        assert is_hour_in_quiet_range(12, 7, 7) is False
        assert is_hour_in_quiet_range(7, 7, 7) is False


class TestCurrentHour:
    def test_valid_timezone(self):
        hour = get_current_hour_in_timezone("America/Chicago")
        assert 0 <= hour <= 23

    def test_invalid_timezone_falls_back_to_utc(self, caplog):
        with caplog.at_level(logging.WARNING):
            hour = get_current_hour_in_timezone("Not/AZone")

        assert 0 <= hour <= 23
        assert "Invalid timezone" in caplog.text


class TestIsInQuietHours:
    @pytest.mark.parametrize("tz,start,end", [
        (None, 22, 7),
        ("", 22, 7),
        ("America/Chicago", None, 7),
        ("America/Chicago", 22, None),
    ])
    def test_unconfigured_never_suppresses(self, tz, start, end, monkeypatch):
        monkeypatch.setattr(quiet_hours, "get_current_hour_in_timezone", lambda name: 23)
        assert is_in_quiet_hours(tz, start, end) is False

    def test_inside_window(self, monkeypatch):
        monkeypatch.setattr(quiet_hours, "get_current_hour_in_timezone", lambda name: 23)
        assert is_in_quiet_hours("America/Chicago", 22, 7) is True

    def test_outside_window(self, monkeypatch):
        monkeypatch.setattr(quiet_hours, "get_current_hour_in_timezone", lambda name: 12)
        assert is_in_quiet_hours("America/Chicago", 22, 7) is False
