"""
Interval classification.

Pure functions answering the three questions the billing rules depend on:
is the instant on a calendar weekend, is it a night-shift hour, and is it
inside office hours. Night shift and office hours are decided by the start
of an interval only.
"""

import datetime

from app.core.config import (
    NIGHT_SHIFT_END,
    NIGHT_SHIFT_START,
    OFFICE_DAYS,
    OFFICE_HOURS_END,
    OFFICE_HOURS_START,
    WEEKEND_DAYS,
)


def is_weekend(moment: datetime.date | datetime.datetime) -> bool:
    """Saturday or Sunday. Holidays are not considered here."""
    return moment.weekday() in WEEKEND_DAYS


def is_night_shift(start: datetime.datetime) -> bool:
    """22:00-06:00, judged by the start hour."""
    return start.hour >= NIGHT_SHIFT_START or start.hour < NIGHT_SHIFT_END


def is_office_hours(start: datetime.datetime, is_holiday: bool = False) -> bool:
    """Mon-Fri 09:00-18:00; never on a holiday."""
    if is_holiday:
        return False
    return start.weekday() in OFFICE_DAYS and OFFICE_HOURS_START <= start.hour < OFFICE_HOURS_END
