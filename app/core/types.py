# app/core/types.py

"""
Type aliases for the compensation engine.

NewType wrappers keep month and day keys from being mixed up with other
plain strings and integers.
"""

from decimal import Decimal
from typing import NewType, TypedDict

MonthKey = NewType("MonthKey", str)  # "2025-01"
DayKey = NewType("DayKey", str)  # "2025-01-31"

Minutes = int
Amount = Decimal


class BillableMinutes(TypedDict):
    """Whole billable minutes per bucket for one month."""

    weekday_oncall: Minutes
    weekend_oncall: Minutes
    weekday_incident: Minutes
    weekend_incident: Minutes
    weekday_night: Minutes
    weekend_night: Minutes


class CompensationTotals(TypedDict):
    oncall: Amount
    incident_base: Amount
    night_bonus: Amount
    incident: Amount
    total: Amount
