import datetime
import enum
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.config import DISPLAY_DECIMALS


class EventType(str, enum.Enum):
    ONCALL = "oncall"
    INCIDENT = "incident"
    HOLIDAY = "holiday"


#: Event types that produce compensation.
COMPENSABLE_TYPES: tuple[EventType, ...] = (EventType.ONCALL, EventType.INCIDENT)


class CalendarEvent(BaseModel):
    """A shift, incident or holiday as stored by the event store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    start: datetime.datetime
    end: datetime.datetime
    type: EventType
    title: str | None = None

    @model_validator(mode="after")
    def _check_range(self) -> "CalendarEvent":
        if self.start.tzinfo is not None or self.end.tzinfo is not None:
            raise ValueError(f"Event {self.id} must use naive local times, got a UTC offset")
        if self.end < self.start:
            raise ValueError(f"Event {self.id} ends before it starts ({self.start} > {self.end})")
        return self

    @property
    def is_holiday(self) -> bool:
        return self.type == EventType.HOLIDAY

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start


class SubInterval(BaseModel):
    """Hour-aligned slice of a parent event with its classification flags."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    parent_event_id: str = Field(min_length=1)
    start: datetime.datetime
    end: datetime.datetime
    is_weekday: bool
    is_weekend: bool
    is_holiday: bool
    is_night_shift: bool
    is_office_hours: bool
    type: EventType

    @model_validator(mode="after")
    def _check_flags(self) -> "SubInterval":
        if self.end < self.start:
            raise ValueError(f"Sub-interval {self.id} has negative duration")
        if self.is_weekday == self.is_weekend:
            raise ValueError(f"Sub-interval {self.id}: is_weekday must be the negation of is_weekend")
        if self.is_holiday and (not self.is_weekend or self.is_office_hours):
            raise ValueError(f"Sub-interval {self.id}: holiday hours are weekend hours and never office hours")
        return self

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start


class RateTable(BaseModel):
    """Hourly rates and multipliers. A holiday is always billed as weekend."""

    model_config = ConfigDict(frozen=True)

    weekday_oncall_rate: Decimal = Field(ge=0)
    weekend_oncall_rate: Decimal = Field(ge=0)
    base_hourly_salary: Decimal = Field(ge=0)
    weekday_incident_multiplier: Decimal = Field(ge=0)
    weekend_incident_multiplier: Decimal = Field(ge=0)
    night_shift_bonus_multiplier: Decimal = Field(ge=1)


class LineItemCategory(str, enum.Enum):
    ONCALL = "oncall"
    INCIDENT = "incident"
    TOTAL = "total"


class EventReference(BaseModel):
    """Event contributing to a line item."""

    id: str
    start: datetime.datetime
    end: datetime.datetime
    is_holiday: bool = False


def round_amount(amount: Decimal) -> Decimal:
    """Round to display precision (half-up)."""
    return amount.quantize(Decimal(1).scaleb(-DISPLAY_DECIMALS), rounding=ROUND_HALF_UP)


class CompensationLineItem(BaseModel):
    category: LineItemCategory
    amount: Decimal = Field(ge=0)
    count: int = Field(ge=0)
    description: str
    month: datetime.date
    events: list[EventReference] = Field(default_factory=list)

    @property
    def rounded_amount(self) -> Decimal:
        return round_amount(self.amount)


class HoursSummary(BaseModel):
    total: Decimal = Decimal(0)
    billable: Decimal = Decimal(0)
    weekday: Decimal = Decimal(0)
    weekend: Decimal = Decimal(0)
    night_shift: Decimal = Decimal(0)
    office_hours: Decimal = Decimal(0)


class CompensationDetail(BaseModel):
    """One rate-applied row of a per-event summary."""

    description: str
    hours: Decimal
    rate: Decimal
    multiplier: Decimal | None = None
    night_shift_multiplier: Decimal | None = None
    amount: Decimal = Field(ge=0)


class MonthlyCompensation(BaseModel):
    month: str
    amount: Decimal
    details: list[CompensationDetail]


class EventCompensationSummary(BaseModel):
    event_id: str
    total: Decimal = Decimal(0)
    hours: HoursSummary = Field(default_factory=HoursSummary)
    details: list[CompensationDetail] = Field(default_factory=list)
    # Only set when the event spans more than one month
    monthly_breakdown: list[MonthlyCompensation] | None = None
