"""
Holiday ripple coordination.

When a holiday is created, edited or deleted every on-call and incident
event overlapping its days has to be reclassified. One run goes through

    IDLE -> FIND_AFFECTED -> REGENERATE_EACH -> INVALIDATE_CACHES -> IDLE

Regeneration always runs against the post-mutation holiday set and is a
full replace (delete then save) of the event's sub-intervals. A failure on
one event is logged and recorded; the remaining events are still processed.

Ordering is enforced by awaiting, never by delays: callers await the run,
and readers can await ``wait_until_idle()`` before trusting a breakdown.
Regeneration of a single event is serialised with a per-event lock, shared
with the use-case layer, so two regenerations of the same event never
interleave.
"""

import asyncio
import datetime
import enum
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from app.core.exceptions import PartialRegenerationFailure, StorageError
from app.core.models import COMPENSABLE_TYPES, CalendarEvent, SubInterval
from app.core.storage import EventStore, SubIntervalStore
from app.core.subintervals import SubEventGenerator
from app.core.time_utils import day_range

logger = logging.getLogger(__name__)

DateRange = tuple[datetime.datetime, datetime.datetime]


class RippleState(str, enum.Enum):
    IDLE = "idle"
    FIND_AFFECTED = "find_affected"
    REGENERATE_EACH = "regenerate_each"
    INVALIDATE_CACHES = "invalidate_caches"


class HolidayMutation(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class RippleReport:
    holiday_id: str
    mutation: HolidayMutation
    affected: list[str] = field(default_factory=list)
    regenerated: list[str] = field(default_factory=list)
    failures: list[PartialRegenerationFailure] = field(default_factory=list)
    lookup_error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.failures and self.lookup_error is None


def merge_ranges(ranges: Iterable[DateRange]) -> list[DateRange]:
    """Merge overlapping or touching ranges."""
    merged: list[DateRange] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


class RippleCoordinator:
    def __init__(
        self,
        event_store: EventStore,
        sub_interval_store: SubIntervalStore,
        generator: SubEventGenerator,
        invalidators: Iterable[Callable[[], None]] = (),
    ):
        self.event_store = event_store
        self.sub_interval_store = sub_interval_store
        self.generator = generator
        self._invalidators: list[Callable[[], None]] = list(invalidators)
        self._locks: dict[str, asyncio.Lock] = {}
        self._state = RippleState.IDLE
        self._active_runs = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> RippleState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return self._active_runs == 0

    def add_invalidator(self, invalidator: Callable[[], None]) -> None:
        self._invalidators.append(invalidator)

    def invalidate_caches(self) -> None:
        for invalidator in self._invalidators:
            invalidator()

    async def wait_until_idle(self) -> None:
        """Return once no ripple run is in flight."""
        await self._idle.wait()

    def _lock_for(self, event_id: str) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = self._locks[event_id] = asyncio.Lock()
        return lock

    def forget(self, event_id: str) -> None:
        """Drop the per-event lock of a deleted event."""
        lock = self._locks.get(event_id)
        if lock is not None and not lock.locked():
            del self._locks[event_id]

    async def regenerate_event(
        self,
        event: CalendarEvent,
        holidays: Iterable[CalendarEvent],
    ) -> list[SubInterval]:
        """Replace the stored sub-intervals of ``event`` (delete then save)."""
        async with self._lock_for(event.id):
            return await self._replace(event, list(holidays))

    async def _replace(self, event: CalendarEvent, holidays: list[CalendarEvent]) -> list[SubInterval]:
        await self.sub_interval_store.delete_by_parent_id(event.id)
        sub_intervals = self.generator.generate(event, holidays)
        if sub_intervals:
            await self.sub_interval_store.save(sub_intervals)
        logger.debug("Stored %d sub-intervals for event %s", len(sub_intervals), event.id)
        return sub_intervals

    async def post_mutation_holidays(
        self,
        holiday: CalendarEvent,
        mutation: HolidayMutation,
    ) -> list[CalendarEvent]:
        holidays = [h for h in await self.event_store.get_holidays() if h.id != holiday.id]
        if mutation != HolidayMutation.DELETED and holiday.is_holiday:
            holidays.append(holiday)
        return holidays

    async def find_affected(self, ranges: Iterable[DateRange], exclude_id: str | None = None) -> list[CalendarEvent]:
        affected: dict[str, CalendarEvent] = {}
        for start, end in merge_ranges(ranges):
            for event in await self.event_store.get_by_date_range(start, end, COMPENSABLE_TYPES):
                if event.id != exclude_id:
                    affected.setdefault(event.id, event)
        return list(affected.values())

    async def regenerate_affected_by_holiday(
        self,
        holiday: CalendarEvent,
        affected_events: Iterable[CalendarEvent] | None = None,
        *,
        mutation: HolidayMutation = HolidayMutation.CREATED,
        previous: CalendarEvent | None = None,
    ) -> RippleReport:
        """Reclassify every event touched by a holiday mutation.

        Args:
            holiday: The holiday in its post-mutation state (or as it was
                before deletion for ``DELETED``).
            affected_events: Events to regenerate. Looked up from the event
                store by the holiday's days when omitted.
            mutation: What happened to the holiday.
            previous: The holiday before an update; its days are reclassified too.

        Returns:
            RippleReport listing regenerated events and per-event failures.
        """
        report = RippleReport(holiday_id=holiday.id, mutation=mutation)
        self._active_runs += 1
        self._idle.clear()
        try:
            self._state = RippleState.FIND_AFFECTED
            try:
                holidays = await self.post_mutation_holidays(holiday, mutation)
                if affected_events is None:
                    ranges = [day_range(holiday.start, holiday.end)]
                    if previous is not None:
                        ranges.append(day_range(previous.start, previous.end))
                    affected_events = await self.find_affected(ranges, exclude_id=holiday.id)
            except StorageError as e:
                logger.error("Ripple for holiday %s could not load events: %s", holiday.id, e, exc_info=True)
                report.lookup_error = str(e)
                return report

            events = [e for e in affected_events if e.type in COMPENSABLE_TYPES and e.id != holiday.id]
            report.affected = [e.id for e in events]
            logger.info(
                "Ripple (%s) for holiday %s: %d affected events",
                mutation.value,
                holiday.id,
                len(events),
            )

            self._state = RippleState.REGENERATE_EACH
            for event in events:
                try:
                    async with self._lock_for(event.id):
                        current = await self.event_store.get_by_id(event.id)
                        if current is None:
                            logger.debug("Event %s was deleted before ripple regeneration, skipping", event.id)
                            continue
                        await self._replace(current, holidays)
                    report.regenerated.append(event.id)
                except Exception as e:
                    failure = PartialRegenerationFailure(event.id, e)
                    report.failures.append(failure)
                    logger.error(
                        "Ripple: failed to regenerate event %s (holiday %s): %s",
                        event.id,
                        holiday.id,
                        e,
                        exc_info=True,
                        extra={"event_id": event.id, "holiday_id": holiday.id},
                    )

            if report.failures:
                logger.warning(
                    "Ripple for holiday %s finished with %d of %d events failed: %s",
                    holiday.id,
                    len(report.failures),
                    len(events),
                    ", ".join(f.event_id for f in report.failures),
                )
            return report
        finally:
            self._state = RippleState.INVALIDATE_CACHES
            self.invalidate_caches()
            self._active_runs -= 1
            if self._active_runs == 0:
                self._state = RippleState.IDLE
                self._idle.set()
