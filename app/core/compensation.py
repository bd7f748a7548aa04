# app/core/compensation.py
"""
Compensation aggregation.

Billing rules (one set, shared by the monthly breakdown and the per-event
summary):

ON-CALL
    A sub-interval is billable when it is outside office hours or is a
    night-shift hour. Billable time is counted exactly (whole minutes) and
    bucketed into weekday / weekend by ``is_weekend``. A holiday is a weekend.

INCIDENT
    Every sub-interval is billable and is rounded UP to whole hours before
    summation (a 10-minute slice costs one hour). Hours are bucketed into
    weekday / weekend, and the night-shift share of each is tracked
    separately for the night bonus.

RATES
    oncall       = weekday_oncall_h * weekday_rate + weekend_oncall_h * weekend_rate
    incident     = weekday_h * base * weekday_mult + weekend_h * base * weekend_mult
                 + weekday_night_h * base * weekday_mult * (night_mult - 1)
                 + weekend_night_h * base * weekend_mult * (night_mult - 1)
    total        = oncall + incident

    so a night-shift incident hour costs ``base * day_mult * night_mult``.

Amounts are Decimal end to end; rounding to display precision happens only
when presenting (``CompensationLineItem.rounded_amount``).
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal

from app.core.models import (
    COMPENSABLE_TYPES,
    CalendarEvent,
    CompensationDetail,
    CompensationLineItem,
    EventCompensationSummary,
    EventReference,
    EventType,
    HoursSummary,
    LineItemCategory,
    MonthlyCompensation,
    RateTable,
    SubInterval,
)
from app.core.rates import resolve_rate_table
from app.core.time_utils import MonthAnchor, month_anchor_date, month_key, whole_minutes
from app.core.types import BillableMinutes, CompensationTotals

logger = logging.getLogger(__name__)

MINUTES_PER_HOUR = 60
_SIXTY = Decimal(MINUTES_PER_HOUR)


def to_hours(minutes: int) -> Decimal:
    return Decimal(minutes) / _SIXTY


def _format_hours(minutes: int) -> str:
    hours = to_hours(minutes).quantize(Decimal("0.01")).normalize()
    # normalize() turns 10 into 1E+1
    return f"{hours:f}h"


def is_billable(sub: SubInterval) -> bool:
    if sub.type == EventType.INCIDENT:
        return True
    if sub.type == EventType.ONCALL:
        return not sub.is_office_hours or sub.is_night_shift
    return False


def billable_minutes(sub: SubInterval) -> int:
    """Billable minutes of one sub-interval (incidents rounded up to whole hours)."""
    minutes = whole_minutes(sub.end - sub.start)
    if not is_billable(sub):
        return 0
    if sub.type == EventType.INCIDENT:
        hours = -(-minutes // MINUTES_PER_HOUR)
        return hours * MINUTES_PER_HOUR
    return minutes


def empty_minutes() -> BillableMinutes:
    return BillableMinutes(
        weekday_oncall=0,
        weekend_oncall=0,
        weekday_incident=0,
        weekend_incident=0,
        weekday_night=0,
        weekend_night=0,
    )


def accumulate(sub_intervals: Iterable[SubInterval]) -> BillableMinutes:
    """Sum billable minutes per bucket.

    Incident weekday/weekend buckets include their night-shift share; the
    night buckets are a subset used only for the bonus.
    """
    buckets = empty_minutes()
    for sub in sub_intervals:
        minutes = billable_minutes(sub)
        if not minutes:
            continue
        if sub.type == EventType.ONCALL:
            buckets["weekend_oncall" if sub.is_weekend else "weekday_oncall"] += minutes
        elif sub.type == EventType.INCIDENT:
            if sub.is_weekend:
                buckets["weekend_incident"] += minutes
                if sub.is_night_shift:
                    buckets["weekend_night"] += minutes
            else:
                buckets["weekday_incident"] += minutes
                if sub.is_night_shift:
                    buckets["weekday_night"] += minutes
    return buckets


def apply_rates(minutes: BillableMinutes, rates: RateTable) -> CompensationTotals:
    base = rates.base_hourly_salary
    night_extra = rates.night_shift_bonus_multiplier - 1

    oncall = (
        Decimal(minutes["weekday_oncall"]) * rates.weekday_oncall_rate
        + Decimal(minutes["weekend_oncall"]) * rates.weekend_oncall_rate
    ) / _SIXTY
    incident_base = (
        to_hours(minutes["weekday_incident"]) * base * rates.weekday_incident_multiplier
        + to_hours(minutes["weekend_incident"]) * base * rates.weekend_incident_multiplier
    )
    night_bonus = (
        to_hours(minutes["weekday_night"]) * base * rates.weekday_incident_multiplier * night_extra
        + to_hours(minutes["weekend_night"]) * base * rates.weekend_incident_multiplier * night_extra
    )
    incident = incident_base + night_bonus

    # Only categories with billable time contribute, so the total keeps their scale
    total = Decimal(0)
    if minutes["weekday_oncall"] or minutes["weekend_oncall"]:
        total += oncall
    if minutes["weekday_incident"] or minutes["weekend_incident"]:
        total += incident
    return CompensationTotals(
        oncall=oncall,
        incident_base=incident_base,
        night_bonus=night_bonus,
        incident=incident,
        total=total,
    )


class CompensationAggregator:
    """Builds the monthly compensation breakdown from events and sub-intervals."""

    def __init__(self, rates: RateTable | None = None):
        self.rates = rates or resolve_rate_table()

    def aggregate_month(
        self,
        events: Iterable[CalendarEvent],
        sub_intervals: Iterable[SubInterval],
        month_anchor: MonthAnchor,
    ) -> list[CompensationLineItem]:
        key = month_key(month_anchor)
        month_date = month_anchor_date(month_anchor)

        month_events = [e for e in events if e.type in COMPENSABLE_TYPES and month_key(e.start) == key]
        if not month_events:
            logger.info("No compensable events for month %s", key)
            return []

        event_ids = {e.id for e in month_events}
        month_subs = [s for s in sub_intervals if s.parent_event_id in event_ids]
        minutes = accumulate(month_subs)
        totals = apply_rates(minutes, self.rates)

        holiday_parents = {s.parent_event_id for s in month_subs if s.is_holiday}
        oncall_events = [e for e in month_events if e.type == EventType.ONCALL]
        incident_events = [e for e in month_events if e.type == EventType.INCIDENT]

        logger.info(
            "Month %s: %d events, %d sub-intervals, on-call %s, incidents %s, total %s",
            key,
            len(month_events),
            len(month_subs),
            totals["oncall"],
            totals["incident"],
            totals["total"],
        )

        def refs(selected: list[CalendarEvent]) -> list[EventReference]:
            return [
                EventReference(id=e.id, start=e.start, end=e.end, is_holiday=e.id in holiday_parents)
                for e in selected
            ]

        items: list[CompensationLineItem] = []
        if minutes["weekday_oncall"] or minutes["weekend_oncall"]:
            items.append(
                CompensationLineItem(
                    category=LineItemCategory.ONCALL,
                    amount=totals["oncall"],
                    count=len(oncall_events),
                    description=(
                        f"On-call shifts ({_format_hours(minutes['weekday_oncall'])} weekday, "
                        f"{_format_hours(minutes['weekend_oncall'])} weekend)"
                    ),
                    month=month_date,
                    events=refs(oncall_events),
                )
            )

        if minutes["weekday_incident"] or minutes["weekend_incident"]:
            items.append(
                CompensationLineItem(
                    category=LineItemCategory.INCIDENT,
                    amount=totals["incident"],
                    count=len(incident_events),
                    description=(
                        f"Incidents ({_format_hours(minutes['weekday_incident'])} weekday, "
                        f"{_format_hours(minutes['weekend_incident'])} weekend, "
                        f"{_format_hours(minutes['weekday_night'])} weekday night, "
                        f"{_format_hours(minutes['weekend_night'])} weekend night)"
                    ),
                    month=month_date,
                    events=refs(incident_events),
                )
            )

        # Always emitted so the month shows up in monthly listings
        items.append(
            CompensationLineItem(
                category=LineItemCategory.TOTAL,
                amount=totals["total"],
                count=len(month_events),
                description="Total compensation" if totals["total"] > 0 else "No compensation calculated",
                month=month_date,
                events=refs(month_events),
            )
        )
        return items


# === Per-event summary ===


def _detail_rows(minutes: BillableMinutes, rates: RateTable) -> list[CompensationDetail]:
    base = rates.base_hourly_salary
    night = rates.night_shift_bonus_multiplier
    rows: list[CompensationDetail] = []

    if minutes["weekday_oncall"]:
        hours = to_hours(minutes["weekday_oncall"])
        rows.append(
            CompensationDetail(
                description="Weekday On-Call",
                hours=hours,
                rate=rates.weekday_oncall_rate,
                amount=hours * rates.weekday_oncall_rate,
            )
        )
    if minutes["weekend_oncall"]:
        hours = to_hours(minutes["weekend_oncall"])
        rows.append(
            CompensationDetail(
                description="Weekend On-Call",
                hours=hours,
                rate=rates.weekend_oncall_rate,
                amount=hours * rates.weekend_oncall_rate,
            )
        )

    incident_rows = (
        ("Weekday", minutes["weekday_incident"], minutes["weekday_night"], rates.weekday_incident_multiplier),
        ("Weekend", minutes["weekend_incident"], minutes["weekend_night"], rates.weekend_incident_multiplier),
    )
    for label, all_minutes, night_minutes, multiplier in incident_rows:
        day_minutes = all_minutes - night_minutes
        if day_minutes:
            hours = to_hours(day_minutes)
            rows.append(
                CompensationDetail(
                    description=f"{label} Incident",
                    hours=hours,
                    rate=base,
                    multiplier=multiplier,
                    amount=hours * base * multiplier,
                )
            )
        if night_minutes:
            hours = to_hours(night_minutes)
            rows.append(
                CompensationDetail(
                    description=f"{label} Night Incident",
                    hours=hours,
                    rate=base,
                    multiplier=multiplier,
                    night_shift_multiplier=night,
                    amount=hours * base * multiplier * night,
                )
            )
    return rows


def _hours_summary(event: CalendarEvent, subs: list[SubInterval]) -> HoursSummary:
    billable = weekday = weekend = night_shift = office = 0
    for sub in subs:
        minutes = whole_minutes(sub.end - sub.start)
        if is_billable(sub):
            billable += minutes
        if sub.is_weekend:
            weekend += minutes
        else:
            weekday += minutes
        if sub.is_night_shift:
            night_shift += minutes
        if sub.is_office_hours and not sub.is_night_shift:
            office += minutes
    return HoursSummary(
        total=to_hours(whole_minutes(event.end - event.start)),
        billable=to_hours(billable),
        weekday=to_hours(weekday),
        weekend=to_hours(weekend),
        night_shift=to_hours(night_shift),
        office_hours=to_hours(office),
    )


def summarize_event(
    event: CalendarEvent,
    sub_intervals: Iterable[SubInterval],
    rates: RateTable | None = None,
) -> EventCompensationSummary:
    """Detailed compensation for a single event.

    ``monthly_breakdown`` is only filled in when the event's sub-intervals
    fall into more than one month.
    """
    rates = rates or resolve_rate_table()
    subs = sorted((s for s in sub_intervals if s.parent_event_id == event.id), key=lambda s: s.start)
    if not subs:
        logger.warning("No sub-intervals found for event %s", event.id)
        return EventCompensationSummary(event_id=event.id)

    details = _detail_rows(accumulate(subs), rates)

    by_month: dict[str, list[SubInterval]] = defaultdict(list)
    for sub in subs:
        by_month[month_key(sub.start)].append(sub)

    monthly: list[MonthlyCompensation] | None = None
    if len(by_month) > 1:
        monthly = []
        for key in sorted(by_month):
            month_details = _detail_rows(accumulate(by_month[key]), rates)
            monthly.append(
                MonthlyCompensation(
                    month=key,
                    amount=sum((d.amount for d in month_details), Decimal(0)),
                    details=month_details,
                )
            )

    return EventCompensationSummary(
        event_id=event.id,
        total=sum((d.amount for d in details), Decimal(0)),
        hours=_hours_summary(event, subs),
        details=details,
        monthly_breakdown=monthly,
    )


def total_compensation(
    events: Iterable[CalendarEvent],
    sub_intervals: Iterable[SubInterval],
    rates: RateTable | None = None,
) -> Decimal:
    """Total over all given events regardless of month."""
    ids = {e.id for e in events if e.type in COMPENSABLE_TYPES}
    minutes = accumulate(s for s in sub_intervals if s.parent_event_id in ids)
    return apply_rates(minutes, rates or resolve_rate_table())["total"]
