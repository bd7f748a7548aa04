"""
Use-case layer for calendar event mutations.

Every mutation persists the event, regenerates its own sub-intervals, runs
the holiday ripple when a holiday is involved (awaited, never scheduled) and
ends with cache invalidation.
"""

import logging
from dataclasses import dataclass, field

from app.core.exceptions import EventNotFoundError
from app.core.facade import CompensationFacade
from app.core.models import CalendarEvent, EventType, SubInterval
from app.core.ripple import HolidayMutation, RippleCoordinator, RippleReport
from app.core.storage import EventStore, SubIntervalStore

logger = logging.getLogger(__name__)


@dataclass
class EventChange:
    """Outcome of a create, update or delete."""

    event: CalendarEvent
    sub_intervals: list[SubInterval] = field(default_factory=list)
    ripple: RippleReport | None = None


def holiday_changed(previous: CalendarEvent, current: CalendarEvent) -> bool:
    """True if an update affects the holiday set."""
    if previous.is_holiday != current.is_holiday:
        return True
    return current.is_holiday and (previous.start, previous.end) != (current.start, current.end)


class EventService:
    def __init__(
        self,
        event_store: EventStore,
        sub_interval_store: SubIntervalStore,
        ripple: RippleCoordinator,
        facade: CompensationFacade,
    ):
        self.event_store = event_store
        self.sub_interval_store = sub_interval_store
        self.ripple = ripple
        self.facade = facade

    async def get_event(self, event_id: str) -> CalendarEvent:
        event = await self.event_store.get_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    async def list_events(self, types: list[EventType] | None = None) -> list[CalendarEvent]:
        events = await self.event_store.get_all()
        if types:
            events = [e for e in events if e.type in types]
        return events

    async def get_sub_intervals(self, event_id: str) -> list[SubInterval]:
        await self.get_event(event_id)
        await self.ripple.wait_until_idle()
        return await self.sub_interval_store.get_by_parent_id(event_id)

    async def create_event(self, event: CalendarEvent) -> EventChange:
        try:
            await self.event_store.save(event)
            holidays = await self.event_store.get_holidays()
            sub_intervals = await self.ripple.regenerate_event(event, holidays)
            logger.info("Created %s event %s (%d sub-intervals)", event.type.value, event.id, len(sub_intervals))

            report = None
            if event.is_holiday:
                report = await self.ripple.regenerate_affected_by_holiday(event, mutation=HolidayMutation.CREATED)
            return EventChange(event=event, sub_intervals=sub_intervals, ripple=report)
        finally:
            self.facade.invalidate_caches()

    async def update_event(self, event: CalendarEvent) -> EventChange:
        """Replace a stored event.

        Raises:
            EventNotFoundError: if the event does not exist
        """
        previous = await self.get_event(event.id)
        try:
            await self.event_store.update(event)
            holidays = await self.event_store.get_holidays()
            sub_intervals = await self.ripple.regenerate_event(event, holidays)
            logger.info("Updated %s event %s (%d sub-intervals)", event.type.value, event.id, len(sub_intervals))

            report = None
            if holiday_changed(previous, event):
                report = await self.ripple.regenerate_affected_by_holiday(
                    event,
                    mutation=HolidayMutation.UPDATED,
                    previous=previous,
                )
            return EventChange(event=event, sub_intervals=sub_intervals, ripple=report)
        finally:
            self.facade.invalidate_caches()

    async def delete_event(self, event_id: str) -> EventChange:
        """Delete an event and its sub-intervals.

        Raises:
            EventNotFoundError: if the event does not exist
        """
        event = await self.get_event(event_id)
        try:
            await self.event_store.delete(event_id)
            await self.sub_interval_store.delete_by_parent_id(event_id)
            self.ripple.forget(event_id)
            logger.info("Deleted %s event %s", event.type.value, event_id)

            report = None
            if event.is_holiday:
                report = await self.ripple.regenerate_affected_by_holiday(event, mutation=HolidayMutation.DELETED)
            return EventChange(event=event, ripple=report)
        finally:
            self.facade.invalidate_caches()
