import datetime
import logging

from app.core.config import DATE_FORMAT_ISO, MONTH_KEY_FORMAT
from app.core.exceptions import InvalidIntervalError
from app.core.types import DayKey, MonthKey

logger = logging.getLogger(__name__)

MonthAnchor = datetime.date | datetime.datetime | str


def month_key(anchor: MonthAnchor) -> MonthKey:
    """Return the "YYYY-MM" key of the month containing ``anchor``.

    A string is accepted as an already-formed key and normalised.
    """
    if isinstance(anchor, str):
        year, month = parse_month_key(anchor)
        return MonthKey(f"{year:04d}-{month:02d}")
    return MonthKey(anchor.strftime(MONTH_KEY_FORMAT))


def parse_month_key(key: str) -> tuple[int, int]:
    try:
        parsed = datetime.datetime.strptime(key.strip(), MONTH_KEY_FORMAT)
    except ValueError as e:
        logger.error("Invalid month key %r", key)
        raise ValueError(f"Invalid month key: {key!r}") from e
    return parsed.year, parsed.month


def month_start(anchor: MonthAnchor) -> datetime.datetime:
    """First instant of the month containing ``anchor``."""
    year, month = parse_month_key(month_key(anchor))
    return datetime.datetime(year, month, 1)


def next_month_start(anchor: MonthAnchor) -> datetime.datetime:
    """First instant of the month after the one containing ``anchor``."""
    year, month = parse_month_key(month_key(anchor))
    if month == 12:
        return datetime.datetime(year + 1, 1, 1)
    return datetime.datetime(year, month + 1, 1)


def month_anchor_date(anchor: MonthAnchor) -> datetime.date:
    return month_start(anchor).date()


def floor_to_hour(dt: datetime.datetime) -> datetime.datetime:
    return dt.replace(minute=0, second=0, microsecond=0)


def start_of_day(day: datetime.date | datetime.datetime) -> datetime.datetime:
    if isinstance(day, datetime.datetime):
        day = day.date()
    return datetime.datetime.combine(day, datetime.time(0, 0))


def day_key(day: datetime.date | datetime.datetime) -> DayKey:
    if isinstance(day, datetime.datetime):
        day = day.date()
    return DayKey(day.strftime(DATE_FORMAT_ISO))


def day_range(start: datetime.datetime, end: datetime.datetime) -> tuple[datetime.datetime, datetime.datetime]:
    """Expand an instant range to whole days: [start day 00:00, day after end day 00:00)."""
    return start_of_day(start), start_of_day(end) + datetime.timedelta(days=1)


def whole_minutes(delta: datetime.timedelta) -> int:
    """Duration in whole minutes; sub-minute remainders are dropped."""
    if delta < datetime.timedelta(0):
        raise InvalidIntervalError(f"Negative duration: {delta}")
    return int(delta.total_seconds()) // 60


def overlaps(
    start: datetime.datetime,
    end: datetime.datetime,
    range_start: datetime.datetime,
    range_end: datetime.datetime,
) -> bool:
    """True if [start, end) overlaps [range_start, range_end).

    A zero-length interval overlaps when its instant lies inside the range.
    """
    if start == end:
        return range_start <= start < range_end
    return start < range_end and end > range_start
