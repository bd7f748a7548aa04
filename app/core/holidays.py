"""
Holiday membership.

A calendar day is a holiday when it lies inside
``[holiday.start day 00:00, holiday.end day 23:59:59.999]`` of any
holiday-typed event. Answers are memoised per ISO day string for 24 hours;
the memo must be invalidated whenever the holiday set changes.
"""

import datetime
import logging
import threading
from collections.abc import Callable, Iterable

from app.core.config import HOLIDAY_MEMO_TTL
from app.core.models import CalendarEvent, EventType
from app.core.time_utils import day_key

logger = logging.getLogger(__name__)

HolidayFingerprint = frozenset[tuple[str, datetime.datetime, datetime.datetime]]


def _fingerprint(holidays: Iterable[CalendarEvent]) -> HolidayFingerprint:
    return frozenset((h.id, h.start, h.end) for h in holidays)


def covers_day(holiday: CalendarEvent, day: datetime.date) -> bool:
    """Inclusive day-boundary check for a single holiday event."""
    return holiday.start.date() <= day <= holiday.end.date()


class HolidayMembership:
    """Answers "is day D a holiday?" with a day-keyed memo."""

    def __init__(
        self,
        ttl: datetime.timedelta = HOLIDAY_MEMO_TTL,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ):
        self._ttl = ttl
        self._clock = clock
        self._memo: dict[str, tuple[bool, datetime.datetime]] = {}
        self._memo_fingerprint: HolidayFingerprint | None = None
        self._lock = threading.RLock()

    def is_holiday(self, day: datetime.date | datetime.datetime, holiday_events: Iterable[CalendarEvent]) -> bool:
        if isinstance(day, datetime.datetime):
            day = day.date()
        holidays = [e for e in holiday_events if e.type == EventType.HOLIDAY]
        key = day_key(day)
        now = self._clock()

        with self._lock:
            fingerprint = _fingerprint(holidays)
            if fingerprint != self._memo_fingerprint:
                # Built from a different holiday set
                self._memo.clear()
                self._memo_fingerprint = fingerprint

            cached = self._memo.get(key)
            if cached is not None:
                value, stored_at = cached
                if now - stored_at < self._ttl:
                    return value
                del self._memo[key]

            value = any(covers_day(h, day) for h in holidays)
            self._memo[key] = (value, now)
            return value

    def invalidate(self) -> None:
        """Drop every memo entry. Call after any holiday insert/update/delete."""
        with self._lock:
            size = len(self._memo)
            self._memo.clear()
            self._memo_fingerprint = None
        logger.debug("Holiday memo cleared (%d entries)", size)

    @property
    def memo_size(self) -> int:
        return len(self._memo)
