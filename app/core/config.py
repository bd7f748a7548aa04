# app/core/config.py

import datetime
from typing import Final


# ==========================
# Office hours
# ==========================

#: First hour (inclusive) of the office window.
#: On-call time inside the window is not billable unless it is a night-shift hour.
OFFICE_HOURS_START: Final[int] = 9

#: Last hour (exclusive) of the office window.
OFFICE_HOURS_END: Final[int] = 18

#: Weekdays (Monday = 0) that have office hours at all.
OFFICE_DAYS: Final[tuple[int, ...]] = (0, 1, 2, 3, 4)

#: Weekdays (Monday = 0) treated as calendar weekend.
WEEKEND_DAYS: Final[tuple[int, ...]] = (5, 6)


# ==========================
# Night shift
# ==========================

#: An interval is a night-shift interval when its start hour is >= this value ...
NIGHT_SHIFT_START: Final[int] = 22

#: ... or < this value.
NIGHT_SHIFT_END: Final[int] = 6


# ==========================
# Sub-interval generation
# ==========================

#: Length of one generated sub-interval.
SUB_INTERVAL_LENGTH: Final[datetime.timedelta] = datetime.timedelta(hours=1)

#: Steps shorter than this are folded into the previous step (or dropped
#: when there is no previous step).
MERGE_THRESHOLD: Final[datetime.timedelta] = datetime.timedelta(minutes=1)


# ==========================
# Caching
# ==========================

#: Lifetime of one HolidayMembership memo entry.
HOLIDAY_MEMO_TTL: Final[datetime.timedelta] = datetime.timedelta(hours=24)


# ==========================
# Formats
# ==========================

#: ISO format for calendar days, also the HolidayMembership memo key.
DATE_FORMAT_ISO: Final[str] = "%Y-%m-%d"

#: Month key format ("2025-01").
MONTH_KEY_FORMAT: Final[str] = "%Y-%m"

#: Number of decimals shown for currency amounts.
DISPLAY_DECIMALS: Final[int] = 2
