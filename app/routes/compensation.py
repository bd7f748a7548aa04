# app/routes/compensation.py
"""
Compensation routes - monthly breakdown, per-event summary and cache control.
"""

import datetime
import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel

from app.core.container import Engine
from app.core.exceptions import EventNotFoundError, StorageError
from app.core.models import CompensationLineItem, EventCompensationSummary, EventReference
from app.core.time_utils import month_key
from app.routes.events import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/compensation", tags=["compensation"])


class LineItemOut(BaseModel):
    category: str
    amount: Decimal
    rounded_amount: Decimal
    count: int
    description: str
    month: datetime.date
    events: list[EventReference]

    @classmethod
    def from_item(cls, item: CompensationLineItem) -> "LineItemOut":
        return cls(
            category=item.category.value,
            amount=item.amount,
            rounded_amount=item.rounded_amount,
            count=item.count,
            description=item.description,
            month=item.month,
            events=item.events,
        )


class MonthlyCompensationOut(BaseModel):
    month: str
    items: list[LineItemOut]


@router.get("/events/{event_id}", response_model=EventCompensationSummary)
async def event_compensation(event_id: str, engine: Engine = Depends(get_engine)):
    try:
        return await engine.facade.calculate_event_compensation(event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except StorageError as e:
        logger.error("Could not load event %s: %s", event_id, e)
        raise HTTPException(status_code=503, detail="Event storage unavailable") from e


@router.get("/{year}/{month}", response_model=MonthlyCompensationOut)
async def monthly_compensation(
    year: int = Path(ge=1900, le=9999),
    month: int = Path(ge=1, le=12),
    engine: Engine = Depends(get_engine),
):
    """
    Compensation line items for one month.

    An empty list means no on-call or incident events in that month.
    """
    anchor = datetime.date(year, month, 1)
    items = await engine.facade.calculate_monthly_compensation(anchor)
    return MonthlyCompensationOut(month=month_key(anchor), items=[LineItemOut.from_item(i) for i in items])


@router.post("/cache/invalidate")
async def invalidate_cache(engine: Engine = Depends(get_engine)):
    cached = engine.facade.cached_months
    engine.facade.invalidate_caches()
    return {"status": "invalidated", "months": cached}
