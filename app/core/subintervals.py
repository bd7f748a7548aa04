"""
Sub-interval generation.

A parent event is cut into hour-aligned pieces starting at the top of the
hour containing ``event.start``. Each piece ends at the next hour boundary
or at the parent's exact end, whichever comes first, and is tagged with the
classification flags the billing rules need.

Pieces shorter than one minute are folded into the previous piece (or
dropped when there is none), so the result tiles ``[start, end)`` without
degenerate records. Generation is deterministic: the same event and holiday
set always produce the same tiling; only the ids differ.
"""

import datetime
import logging
import uuid
from collections.abc import Callable, Iterable

from app.core.classifier import is_night_shift, is_office_hours, is_weekend
from app.core.config import MERGE_THRESHOLD, SUB_INTERVAL_LENGTH
from app.core.holidays import HolidayMembership
from app.core.models import CalendarEvent, EventType, SubInterval
from app.core.time_utils import floor_to_hour

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def effective_holidays(event: CalendarEvent, holiday_events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
    """Holiday set to classify ``event`` against.

    A holiday event always resolves against its own current version.
    """
    holidays = [h for h in holiday_events if h.type == EventType.HOLIDAY and h.id != event.id]
    if event.is_holiday:
        holidays.append(event)
    return holidays


def hour_steps(start: datetime.datetime, end: datetime.datetime) -> list[tuple[datetime.datetime, datetime.datetime]]:
    """Hour-aligned (start, end) pieces tiling [start, end)."""
    steps: list[tuple[datetime.datetime, datetime.datetime]] = []
    cursor = floor_to_hour(start)

    while cursor < end:
        boundary = cursor + SUB_INTERVAL_LENGTH
        piece_start = max(cursor, start)
        piece_end = min(boundary, end)

        if piece_end - piece_start < MERGE_THRESHOLD:
            if steps:
                steps[-1] = (steps[-1][0], piece_end)
            else:
                logger.debug("Dropping sub-minute leading piece %s -> %s", piece_start, piece_end)
        else:
            steps.append((piece_start, piece_end))

        cursor = boundary

    return steps


class SubEventGenerator:
    """Decomposes calendar events into classified sub-intervals."""

    def __init__(self, membership: HolidayMembership, id_factory: Callable[[], str] = _new_id):
        self.membership = membership
        self._id_factory = id_factory

    def generate(self, event: CalendarEvent, holiday_events: Iterable[CalendarEvent]) -> list[SubInterval]:
        holidays = effective_holidays(event, holiday_events)
        sub_intervals = [
            self._classify(event, piece_start, piece_end, holidays)
            for piece_start, piece_end in hour_steps(event.start, event.end)
        ]
        logger.debug(
            "Generated %d sub-intervals for event %s (%s, %s -> %s)",
            len(sub_intervals),
            event.id,
            event.type.value,
            event.start,
            event.end,
        )
        return sub_intervals

    def _classify(
        self,
        event: CalendarEvent,
        start: datetime.datetime,
        end: datetime.datetime,
        holidays: list[CalendarEvent],
    ) -> SubInterval:
        weekend_hour = is_weekend(start)
        holiday_hour = self.membership.is_holiday(start, holidays)
        night_hour = is_night_shift(start)
        office_hour = is_office_hours(start, is_holiday=holiday_hour)

        weekend = weekend_hour or holiday_hour
        return SubInterval(
            id=self._id_factory(),
            parent_event_id=event.id,
            start=start,
            end=end,
            is_weekday=not weekend,
            is_weekend=weekend,
            is_holiday=holiday_hour,
            is_night_shift=night_hour,
            is_office_hours=office_hour,
            type=event.type,
        )


def generate_sub_intervals(
    event: CalendarEvent,
    holiday_events: Iterable[CalendarEvent],
    membership: HolidayMembership | None = None,
) -> list[SubInterval]:
    """Convenience wrapper using a fresh membership memo when none is given."""
    return SubEventGenerator(membership or HolidayMembership()).generate(event, holiday_events)
