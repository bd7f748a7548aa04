"""
Cross-month splitting.

An event spanning a month boundary is clipped to the part overlapping the
target month so each month can be aggregated on its own. The overlap test
runs on the original range: clamping alone would turn an event outside the
month into a zero-length one that seems to touch it.
"""

import logging
from collections.abc import Iterable

from app.core.models import CalendarEvent, SubInterval
from app.core.time_utils import MonthAnchor, month_key, month_start, next_month_start, overlaps

logger = logging.getLogger(__name__)


def spans_months(event: CalendarEvent) -> bool:
    return month_key(event.start) != month_key(event.end)


def overlaps_month(event: CalendarEvent, target: MonthAnchor) -> bool:
    return overlaps(event.start, event.end, month_start(target), next_month_start(target))


def split_for_month(event: CalendarEvent, target: MonthAnchor) -> CalendarEvent:
    """Return ``event`` clipped to the target month.

    The start is clamped to the first instant of the month when the event
    starts in another month; the end is clamped to the first instant of the
    following month when it ends in another month.
    """
    key = month_key(target)
    update = {}
    if month_key(event.start) != key:
        update["start"] = month_start(key)
    if month_key(event.end) != key:
        update["end"] = next_month_start(key)
    if not update:
        return event

    logger.debug("Clipping event %s to month %s: %s", event.id, key, update)
    return event.model_copy(update=update)


def events_for_month(events: Iterable[CalendarEvent], target: MonthAnchor) -> list[CalendarEvent]:
    """Events overlapping the target month, clipped to it."""
    result = []
    for event in events:
        if not overlaps_month(event, target):
            continue
        result.append(split_for_month(event, target) if spans_months(event) else event)
    return result


def sub_intervals_for_month(sub_intervals: Iterable[SubInterval], target: MonthAnchor) -> list[SubInterval]:
    """Sub-intervals whose start falls in the target month."""
    key = month_key(target)
    return [s for s in sub_intervals if month_key(s.start) == key]
