"""
Tests for the compensation facade.
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ruff: noqa: E402
from app.core.container import build_engine
from app.core.exceptions import EventNotFoundError, StorageError
from app.core.models import EventType, LineItemCategory
from app.core.rates import resolve_rate_table
from app.core.storage import InMemoryEventStore
from app.core.subintervals import generate_sub_intervals


class BrokenEventStore(InMemoryEventStore):
    async def get_all(self):
        raise StorageError("disk on fire")


class CountingEventStore(InMemoryEventStore):
    def __init__(self, events=()):
        super().__init__(events)
        self.get_all_calls = 0

    async def get_all(self):
        self.get_all_calls += 1
        return await super().get_all()


class TestMonthlyCompensation:
    def test_storage_failure_yields_empty_breakdown(self, caplog):
        engine = build_engine(BrokenEventStore(), rates=resolve_rate_table())

        items = asyncio.run(engine.facade.calculate_monthly_compensation("2025-01"))

        assert items == []
        assert "disk on fire" in caplog.text

    def test_supplied_data_bypasses_stores(self, make_event):
        engine = build_engine(BrokenEventStore(), rates=resolve_rate_table())
        oncall = make_event("oc1", "2025-01-04 10:00", "2025-01-04 12:00")
        subs = generate_sub_intervals(oncall, [])

        items = asyncio.run(engine.facade.calculate_monthly_compensation("2025-01", [oncall], subs))

        assert {i.category: i.amount for i in items}[LineItemCategory.ONCALL] == Decimal("14.68")

    def test_sub_intervals_of_supplied_events_are_fetched(self, engine, make_event):
        oncall = make_event("oc1", "2025-01-04 10:00", "2025-01-04 12:00")

        async def run():
            await engine.events.create_event(oncall)
            return await engine.facade.calculate_monthly_compensation("2025-01", events=[oncall])

        items = asyncio.run(run())
        assert {i.category: i.amount for i in items}[LineItemCategory.TOTAL] == Decimal("14.68")

    def test_breakdown_is_memoised_until_invalidated(self, make_event):
        store = CountingEventStore()
        engine = build_engine(store, rates=resolve_rate_table())

        async def run():
            await engine.facade.calculate_monthly_compensation("2025-01")
            await engine.facade.calculate_monthly_compensation("2025-01")
            cached = engine.facade.cached_months
            engine.facade.invalidate_caches()
            await engine.facade.calculate_monthly_compensation("2025-01")
            return cached

        cached = asyncio.run(run())

        assert cached == ["2025-01"]
        assert store.get_all_calls == 2

    def test_mutation_invalidates_breakdown(self, engine, make_event):
        async def run():
            await engine.events.create_event(make_event("oc1", "2025-01-04 10:00", "2025-01-04 12:00"))
            first = await engine.facade.calculate_monthly_compensation("2025-01")
            await engine.events.create_event(make_event("oc2", "2025-01-11 10:00", "2025-01-11 12:00"))
            second = await engine.facade.calculate_monthly_compensation("2025-01")
            return first, second

        first, second = asyncio.run(run())

        assert first[-1].amount == Decimal("14.68")
        assert second[-1].amount == Decimal("29.36")

    def test_invalidate_clears_holiday_memo(self, engine, make_event):
        async def run():
            await engine.events.create_event(make_event("h1", "2025-01-06 00:00", "2025-01-06 23:59", EventType.HOLIDAY))

        asyncio.run(run())
        engine.facade.invalidate_caches()
        assert engine.membership.memo_size == 0


class TestEventCompensation:
    def test_summary_for_stored_event(self, engine, make_event):
        incident = make_event("i1", "2025-01-04 23:00", "2025-01-05 00:00", EventType.INCIDENT)

        async def run():
            await engine.events.create_event(incident)
            return await engine.facade.calculate_event_compensation("i1")

        summary = asyncio.run(run())
        assert summary.event_id == "i1"
        assert summary.total == Decimal("99.624")

    def test_missing_event_raises(self, engine):
        with pytest.raises(EventNotFoundError) as exc_info:
            asyncio.run(engine.facade.calculate_event_compensation("nope"))
        assert exc_info.value.event_id == "nope"


class TestPassthroughs:
    def test_generate_and_aggregate(self, engine, make_event):
        holiday = make_event("h1", "2025-01-06 00:00", "2025-01-06 23:59", EventType.HOLIDAY)
        oncall = make_event("oc1", "2025-01-06 10:00", "2025-01-06 12:00")

        subs = engine.facade.generate_sub_intervals(oncall, [holiday])
        items = engine.facade.aggregate_month([oncall], subs, "2025-01")

        assert all(s.is_holiday for s in subs)
        assert items[-1].amount == Decimal("14.68")

    def test_ripple_through_facade(self, engine, make_event):
        holiday = make_event("h1", "2025-01-06 00:00", "2025-01-06 23:59", EventType.HOLIDAY)

        async def run():
            await engine.events.create_event(make_event("oc1", "2025-01-06 10:00", "2025-01-06 12:00"))
            await engine.event_store.save(holiday)
            return await engine.facade.regenerate_affected_by_holiday(holiday)

        report = asyncio.run(run())
        assert report.regenerated == ["oc1"]
        assert report.ok
