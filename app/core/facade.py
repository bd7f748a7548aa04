"""
Compensation facade.

Entry point for the surrounding application. Reads wait for any in-flight
holiday ripple before touching the stores, and monthly breakdowns fetched
from the stores are memoised per month key until the next invalidation.
"""

import logging
from collections.abc import Iterable

from app.core.compensation import CompensationAggregator, summarize_event
from app.core.exceptions import EventNotFoundError, StorageError
from app.core.holidays import HolidayMembership
from app.core.models import (
    CalendarEvent,
    CompensationLineItem,
    EventCompensationSummary,
    SubInterval,
)
from app.core.month_split import events_for_month, sub_intervals_for_month
from app.core.ripple import HolidayMutation, RippleCoordinator, RippleReport
from app.core.storage import EventStore, SubIntervalStore
from app.core.subintervals import SubEventGenerator
from app.core.time_utils import MonthAnchor, month_key

logger = logging.getLogger(__name__)


class CompensationFacade:
    def __init__(
        self,
        event_store: EventStore,
        sub_interval_store: SubIntervalStore,
        aggregator: CompensationAggregator,
        generator: SubEventGenerator,
        membership: HolidayMembership,
        ripple: RippleCoordinator,
    ):
        self.event_store = event_store
        self.sub_interval_store = sub_interval_store
        self.aggregator = aggregator
        self.generator = generator
        self.membership = membership
        self.ripple = ripple
        self._monthly_memo: dict[str, list[CompensationLineItem]] = {}
        # Bumped on every invalidation so a read racing with it is not memoised
        self._generation = 0

    # --- Passthroughs ---

    def generate_sub_intervals(
        self, event: CalendarEvent, holidays: Iterable[CalendarEvent]
    ) -> list[SubInterval]:
        return self.generator.generate(event, holidays)

    def aggregate_month(
        self,
        events: Iterable[CalendarEvent],
        sub_intervals: Iterable[SubInterval],
        month_anchor: MonthAnchor,
    ) -> list[CompensationLineItem]:
        return self.aggregator.aggregate_month(events, sub_intervals, month_anchor)

    async def regenerate_affected_by_holiday(
        self,
        holiday: CalendarEvent,
        affected_events: Iterable[CalendarEvent] | None = None,
        *,
        mutation: HolidayMutation = HolidayMutation.CREATED,
        previous: CalendarEvent | None = None,
    ) -> RippleReport:
        return await self.ripple.regenerate_affected_by_holiday(
            holiday, affected_events, mutation=mutation, previous=previous
        )

    # --- Reads ---

    async def calculate_monthly_compensation(
        self,
        month_anchor: MonthAnchor,
        events: Iterable[CalendarEvent] | None = None,
        sub_intervals: Iterable[SubInterval] | None = None,
    ) -> list[CompensationLineItem]:
        """Monthly breakdown; events and sub-intervals come from the stores when not given.

        A storage failure is logged and yields an empty breakdown.
        """
        key = month_key(month_anchor)
        fetched = events is None and sub_intervals is None

        await self.ripple.wait_until_idle()

        if fetched and key in self._monthly_memo:
            logger.debug("Monthly breakdown for %s served from memo", key)
            return list(self._monthly_memo[key])

        generation = self._generation
        try:
            if events is None:
                events = await self.event_store.get_all()
            events = list(events)
            if sub_intervals is None:
                sub_intervals = []
                for event in events:
                    sub_intervals.extend(await self.sub_interval_store.get_by_parent_id(event.id))
        except StorageError as e:
            logger.error("Could not load data for month %s: %s", key, e, exc_info=True, extra={"month": key})
            return []

        month_events = events_for_month(events, key)
        event_ids = {e.id for e in month_events}
        month_subs = sub_intervals_for_month(
            (s for s in sub_intervals if s.parent_event_id in event_ids), key
        )
        items = self.aggregator.aggregate_month(month_events, month_subs, key)

        if fetched and generation == self._generation:
            self._monthly_memo[key] = items
        return list(items)

    async def calculate_event_compensation(self, event_id: str) -> EventCompensationSummary:
        """Per-event summary.

        Raises:
            EventNotFoundError: if no event has ``event_id``
        """
        await self.ripple.wait_until_idle()
        event = await self.event_store.get_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        sub_intervals = await self.sub_interval_store.get_by_parent_id(event_id)
        return summarize_event(event, sub_intervals, self.aggregator.rates)

    def invalidate_caches(self) -> None:
        """Drop the monthly memo and the holiday membership memo."""
        self._generation += 1
        cleared = len(self._monthly_memo)
        self._monthly_memo.clear()
        self.membership.invalidate()
        logger.info("Compensation caches invalidated (%d months)", cleared)

    @property
    def cached_months(self) -> list[str]:
        return sorted(self._monthly_memo)
