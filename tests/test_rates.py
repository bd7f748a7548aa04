"""
Unit tests for rate table resolution and loading.
"""

import json
import sys
from decimal import Decimal
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ruff: noqa: E402
from app.core.exceptions import StorageError
from app.core.rates import RATES_FILE_ENV, get_all_defaults, load_rate_table, resolve_rate_table


class TestResolveRateTable:
    def test_defaults(self):
        rates = resolve_rate_table()
        assert rates.weekday_oncall_rate == Decimal("3.90")
        assert rates.weekend_oncall_rate == Decimal("7.34")
        assert rates.base_hourly_salary == Decimal("35.58")
        assert rates.weekday_incident_multiplier == Decimal("1.8")
        assert rates.weekend_incident_multiplier == Decimal("2.0")
        assert rates.night_shift_bonus_multiplier == Decimal("1.4")

    def test_override_keeps_other_defaults(self):
        rates = resolve_rate_table({"base_hourly_salary": 40.1})
        assert rates.base_hourly_salary == Decimal("40.1")
        assert rates.weekday_oncall_rate == Decimal("3.90")

    def test_unknown_rate_name(self):
        with pytest.raises(ValueError, match="holiday_rate"):
            resolve_rate_table({"holiday_rate": 10})

    def test_get_all_defaults(self):
        assert get_all_defaults()["weekend_oncall_rate"] == Decimal("7.34")


class TestLoadRateTable:
    def test_without_file_uses_defaults(self, monkeypatch):
        monkeypatch.delenv(RATES_FILE_ENV, raising=False)
        assert load_rate_table() == resolve_rate_table()

    def test_loads_file_named_by_environment(self, monkeypatch, tmp_path):
        path = tmp_path / "rates.json"
        path.write_text(json.dumps({"weekend_oncall_rate": "8.00"}), encoding="utf-8")
        monkeypatch.setenv(RATES_FILE_ENV, str(path))

        assert load_rate_table().weekend_oncall_rate == Decimal("8.00")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "rates.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            load_rate_table(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(StorageError):
            load_rate_table(tmp_path / "missing.json")

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "rates.json"
        path.write_text(json.dumps({"night_shift_bonus_multiplier": "0.5"}), encoding="utf-8")
        with pytest.raises(StorageError):
            load_rate_table(path)

    def test_non_object(self, tmp_path):
        path = tmp_path / "rates.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(StorageError):
            load_rate_table(path)
