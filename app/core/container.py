"""Explicit wiring of the engine services."""

import logging
from dataclasses import dataclass

from app.core.compensation import CompensationAggregator
from app.core.event_service import EventService
from app.core.facade import CompensationFacade
from app.core.holidays import HolidayMembership
from app.core.models import RateTable
from app.core.rates import load_rate_table
from app.core.ripple import RippleCoordinator
from app.core.storage import (
    EventStore,
    InMemoryEventStore,
    InMemorySubIntervalStore,
    SubIntervalStore,
)
from app.core.subintervals import SubEventGenerator

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    event_store: EventStore
    sub_interval_store: SubIntervalStore
    membership: HolidayMembership
    generator: SubEventGenerator
    aggregator: CompensationAggregator
    ripple: RippleCoordinator
    facade: CompensationFacade
    events: EventService


def build_engine(
    event_store: EventStore | None = None,
    sub_interval_store: SubIntervalStore | None = None,
    rates: RateTable | None = None,
    membership: HolidayMembership | None = None,
) -> Engine:
    """Build a fully wired engine; in-memory stores are used when none are given."""
    event_store = event_store if event_store is not None else InMemoryEventStore()
    sub_interval_store = sub_interval_store if sub_interval_store is not None else InMemorySubIntervalStore()
    membership = membership or HolidayMembership()
    rates = rates or load_rate_table()

    generator = SubEventGenerator(membership)
    aggregator = CompensationAggregator(rates)
    ripple = RippleCoordinator(event_store, sub_interval_store, generator)
    facade = CompensationFacade(event_store, sub_interval_store, aggregator, generator, membership, ripple)
    ripple.add_invalidator(facade.invalidate_caches)
    events = EventService(event_store, sub_interval_store, ripple, facade)

    logger.debug("Engine built with %s / %s", type(event_store).__name__, type(sub_interval_store).__name__)
    return Engine(
        event_store=event_store,
        sub_interval_store=sub_interval_store,
        membership=membership,
        generator=generator,
        aggregator=aggregator,
        ripple=ripple,
        facade=facade,
        events=events,
    )
