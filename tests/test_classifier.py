"""
Unit tests for interval classification.
"""

import datetime
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ruff: noqa: E402
from app.core.classifier import is_night_shift, is_office_hours, is_weekend


class TestWeekend:
    @pytest.mark.parametrize(
        "day, expected",
        [
            (datetime.date(2025, 1, 3), False),  # Friday
            (datetime.date(2025, 1, 4), True),  # Saturday
            (datetime.date(2025, 1, 5), True),  # Sunday
            (datetime.date(2025, 1, 6), False),  # Monday
        ],
    )
    def test_calendar_weekend(self, day, expected):
        assert is_weekend(day) is expected

    def test_accepts_datetime(self):
        assert is_weekend(datetime.datetime(2025, 1, 4, 23, 30))


class TestNightShift:
    @pytest.mark.parametrize("hour", [22, 23, 0, 1, 2, 3, 4, 5])
    def test_night_hours(self, hour):
        assert is_night_shift(datetime.datetime(2025, 1, 6, hour, 0))

    @pytest.mark.parametrize("hour", [6, 9, 12, 18, 21])
    def test_day_hours(self, hour):
        assert not is_night_shift(datetime.datetime(2025, 1, 6, hour, 0))

    def test_judged_by_start_hour(self):
        """21:59 start is not night even though the hour ends inside the window."""
        assert not is_night_shift(datetime.datetime(2025, 1, 6, 21, 59))
        assert is_night_shift(datetime.datetime(2025, 1, 6, 5, 59))


class TestOfficeHours:
    def test_weekday_window_is_nine_to_eighteen(self):
        monday = datetime.date(2025, 1, 6)
        hours = [h for h in range(24) if is_office_hours(datetime.datetime.combine(monday, datetime.time(h)))]
        assert hours == list(range(9, 18))

    def test_weekend_has_no_office_hours(self):
        assert not is_office_hours(datetime.datetime(2025, 1, 4, 10, 0))

    def test_holiday_has_no_office_hours(self):
        assert not is_office_hours(datetime.datetime(2025, 1, 6, 10, 0), is_holiday=True)
