# app/routes/events.py
"""
Calendar event routes - create, update and delete events and inspect their sub-intervals.
"""

import datetime
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field, model_validator

from app.core.container import Engine
from app.core.exceptions import EventNotFoundError, StorageError
from app.core.models import CalendarEvent, EventType, SubInterval
from app.core.ripple import RippleReport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def get_engine(request: Request) -> Engine:
    """Dependency returning the engine built at startup."""
    return request.app.state.engine


class EventIn(BaseModel):
    id: str | None = Field(default=None, min_length=1)
    start: datetime.datetime
    end: datetime.datetime
    type: EventType
    title: str | None = None

    @model_validator(mode="after")
    def _check_range(self) -> "EventIn":
        if self.start.tzinfo is not None or self.end.tzinfo is not None:
            raise ValueError("start and end must be local times without a UTC offset")
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class RippleOut(BaseModel):
    holiday_id: str
    mutation: str
    affected: list[str]
    regenerated: list[str]
    failed: list[str]

    @classmethod
    def from_report(cls, report: RippleReport | None) -> "RippleOut | None":
        if report is None:
            return None
        return cls(
            holiday_id=report.holiday_id,
            mutation=report.mutation.value,
            affected=report.affected,
            regenerated=report.regenerated,
            failed=[f.event_id for f in report.failures],
        )


class EventChangeOut(BaseModel):
    event: CalendarEvent
    sub_interval_count: int
    ripple: RippleOut | None = None


def _storage_unavailable(e: StorageError) -> HTTPException:
    logger.error("Storage failure: %s", e)
    return HTTPException(status_code=503, detail="Event storage unavailable")


@router.get("", response_model=list[CalendarEvent])
async def list_events(
    types: list[EventType] | None = Query(default=None, alias="type"),
    engine: Engine = Depends(get_engine),
):
    try:
        return await engine.events.list_events(types)
    except StorageError as e:
        raise _storage_unavailable(e) from e


@router.post("", response_model=EventChangeOut, status_code=201)
async def create_event(payload: EventIn, engine: Engine = Depends(get_engine)):
    """
    Create an event and its sub-intervals.

    Creating a holiday reclassifies every on-call shift and incident on its days.
    """
    event = CalendarEvent(
        id=payload.id or str(uuid.uuid4()),
        start=payload.start,
        end=payload.end,
        type=payload.type,
        title=payload.title,
    )
    try:
        if await engine.event_store.get_by_id(event.id) is not None:
            raise HTTPException(status_code=409, detail=f"Event {event.id} already exists")
        change = await engine.events.create_event(event)
    except StorageError as e:
        raise _storage_unavailable(e) from e

    return EventChangeOut(
        event=change.event,
        sub_interval_count=len(change.sub_intervals),
        ripple=RippleOut.from_report(change.ripple),
    )


@router.put("/{event_id}", response_model=EventChangeOut)
async def update_event(event_id: str, payload: EventIn, engine: Engine = Depends(get_engine)):
    if payload.id is not None and payload.id != event_id:
        raise HTTPException(status_code=400, detail="Event id in body does not match path")

    event = CalendarEvent(id=event_id, start=payload.start, end=payload.end, type=payload.type, title=payload.title)
    try:
        change = await engine.events.update_event(event)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StorageError as e:
        raise _storage_unavailable(e) from e

    return EventChangeOut(
        event=change.event,
        sub_interval_count=len(change.sub_intervals),
        ripple=RippleOut.from_report(change.ripple),
    )


@router.delete("/{event_id}", response_model=EventChangeOut)
async def delete_event(event_id: str, engine: Engine = Depends(get_engine)):
    try:
        change = await engine.events.delete_event(event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StorageError as e:
        raise _storage_unavailable(e) from e

    return EventChangeOut(event=change.event, sub_interval_count=0, ripple=RippleOut.from_report(change.ripple))


@router.get("/{event_id}/sub-intervals", response_model=list[SubInterval])
async def list_sub_intervals(event_id: str, engine: Engine = Depends(get_engine)):
    try:
        return await engine.events.get_sub_intervals(event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StorageError as e:
        raise _storage_unavailable(e) from e
