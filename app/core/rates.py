"""Rate table resolution with fallback to system defaults.

The rate table is constant for a running engine. Overrides come either from
a dict (tests, API callers) or from a JSON file named by
``COMPENSATION_RATES_FILE``; anything not overridden keeps its default.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from pathlib import Path

from pydantic import ValidationError

from app.core.exceptions import StorageError
from app.core.models import RateTable
from app.core.storage import load_json

logger = logging.getLogger(__name__)

RATES_FILE_ENV = "COMPENSATION_RATES_FILE"

# --- System defaults ---
DEFAULT_RATES: dict[str, str] = {
    "weekday_oncall_rate": "3.90",
    "weekend_oncall_rate": "7.34",
    "base_hourly_salary": "35.58",
    "weekday_incident_multiplier": "1.8",
    "weekend_incident_multiplier": "2.0",
    "night_shift_bonus_multiplier": "1.4",
}


def _to_decimal(value) -> Decimal:
    # str() first so floats like 3.9 do not carry binary noise
    return value if isinstance(value, Decimal) else Decimal(str(value))


def resolve_rate_table(custom: dict | None = None) -> RateTable:
    """Merge ``custom`` over the defaults and build a RateTable.

    Raises:
        pydantic.ValidationError: if a merged value is out of range
        ValueError: if an unknown rate name is given
    """
    custom = custom or {}
    unknown = set(custom) - set(DEFAULT_RATES)
    if unknown:
        raise ValueError(f"Unknown rate names: {', '.join(sorted(unknown))}")
    merged = {**DEFAULT_RATES, **custom}
    return RateTable(**{name: _to_decimal(value) for name, value in merged.items()})


def load_rate_table(path: Path | str | None = None) -> RateTable:
    """Load overrides from a JSON object file; no file means defaults.

    Raises:
        StorageError: if the file cannot be read or does not describe a valid rate table
    """
    if path is None:
        env_path = os.getenv(RATES_FILE_ENV, "").strip()
        if not env_path:
            return resolve_rate_table()
        path = env_path

    file_path = Path(path)
    data = load_json(file_path)
    try:
        if not isinstance(data, dict):
            raise TypeError("Expected rate table object")
        rates = resolve_rate_table(data)
    except (TypeError, ValueError, ValidationError) as e:
        logger.exception("Failed to parse rate table from %s", file_path)
        raise StorageError(f"Could not parse rate table from {file_path}: {e}") from e

    logger.info("Loaded rate table from %s", file_path)
    return rates


def get_all_defaults() -> dict[str, Decimal]:
    """Return the default rates for display."""
    return {name: Decimal(value) for name, value in DEFAULT_RATES.items()}
