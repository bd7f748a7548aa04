"""
Unit tests for time helpers.
"""

import datetime
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ruff: noqa: E402
from app.core.exceptions import InvalidIntervalError
from app.core.time_utils import (
    day_range,
    month_key,
    month_start,
    next_month_start,
    overlaps,
    whole_minutes,
)


class TestMonthHelpers:
    def test_month_key_from_anchors(self):
        assert month_key(datetime.date(2025, 1, 31)) == "2025-01"
        assert month_key(datetime.datetime(2025, 12, 1, 23, 0)) == "2025-12"
        assert month_key("2025-3") == "2025-03"

    def test_invalid_month_key(self):
        with pytest.raises(ValueError):
            month_key("January")

    def test_month_bounds(self):
        assert month_start("2025-02") == datetime.datetime(2025, 2, 1)
        assert next_month_start("2025-12") == datetime.datetime(2026, 1, 1)


class TestDurations:
    def test_whole_minutes_drops_seconds(self):
        assert whole_minutes(datetime.timedelta(minutes=10, seconds=59)) == 10

    def test_negative_duration(self):
        with pytest.raises(InvalidIntervalError):
            whole_minutes(datetime.timedelta(seconds=-1))

    def test_day_range_covers_whole_days(self):
        start, end = day_range(datetime.datetime(2025, 1, 6, 13, 0), datetime.datetime(2025, 1, 7, 0, 30))
        assert (start, end) == (datetime.datetime(2025, 1, 6), datetime.datetime(2025, 1, 8))

    def test_overlaps_is_half_open(self):
        a = datetime.datetime(2025, 1, 6, 10)
        b = datetime.datetime(2025, 1, 6, 12)
        c = datetime.datetime(2025, 1, 6, 14)
        assert overlaps(a, c, b, c)
        assert not overlaps(a, b, b, c)
        assert overlaps(b, b, a, c)
        assert not overlaps(c, c, a, c)
