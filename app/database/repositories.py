"""
SQLAlchemy-backed EventStore and SubIntervalStore.

Each operation opens its own session from the session factory; SQLAlchemy
errors are logged and re-raised as StorageError.
"""

import datetime
import logging
from collections.abc import Iterable
from contextlib import contextmanager

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.exceptions import StorageError
from app.core.models import CalendarEvent, EventType, SubInterval
from app.database.database import CalendarEventRow, SubIntervalRow

logger = logging.getLogger(__name__)


@contextmanager
def _session_scope(factory: sessionmaker, action: str):
    """Commit on success, roll back and wrap SQLAlchemy errors otherwise."""
    session: Session = factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Database error while trying to %s", action)
        raise StorageError(f"Could not {action}: {e}") from e
    finally:
        session.close()


def _to_event(row: CalendarEventRow) -> CalendarEvent:
    return CalendarEvent(id=row.id, start=row.start, end=row.end, type=row.type, title=row.title)


def _to_sub_interval(row: SubIntervalRow) -> SubInterval:
    return SubInterval(
        id=row.id,
        parent_event_id=row.parent_event_id,
        start=row.start,
        end=row.end,
        is_weekday=row.is_weekday,
        is_weekend=row.is_weekend,
        is_holiday=row.is_holiday,
        is_night_shift=row.is_night_shift,
        is_office_hours=row.is_office_hours,
        type=row.type,
    )


class SqlEventStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def get_all(self) -> list[CalendarEvent]:
        with _session_scope(self._session_factory, "load events") as session:
            rows = session.scalars(select(CalendarEventRow).order_by(CalendarEventRow.start, CalendarEventRow.id))
            return [_to_event(r) for r in rows]

    async def get_by_id(self, event_id: str) -> CalendarEvent | None:
        with _session_scope(self._session_factory, f"load event {event_id}") as session:
            row = session.get(CalendarEventRow, event_id)
            return _to_event(row) if row is not None else None

    async def get_by_date_range(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        types: Iterable[EventType] | None = None,
    ) -> list[CalendarEvent]:
        overlapping = or_(
            and_(CalendarEventRow.start < end, CalendarEventRow.end > start),
            # zero-length events sitting inside the range
            and_(
                CalendarEventRow.start == CalendarEventRow.end,
                CalendarEventRow.start >= start,
                CalendarEventRow.start < end,
            ),
        )
        query = select(CalendarEventRow).where(overlapping)
        if types is not None:
            query = query.where(CalendarEventRow.type.in_(list(types)))
        query = query.order_by(CalendarEventRow.start, CalendarEventRow.id)

        with _session_scope(self._session_factory, "query events by date range") as session:
            return [_to_event(r) for r in session.scalars(query)]

    async def get_holidays(self) -> list[CalendarEvent]:
        query = (
            select(CalendarEventRow)
            .where(CalendarEventRow.type == EventType.HOLIDAY)
            .order_by(CalendarEventRow.start, CalendarEventRow.id)
        )
        with _session_scope(self._session_factory, "load holidays") as session:
            return [_to_event(r) for r in session.scalars(query)]

    async def save(self, event: CalendarEvent) -> None:
        with _session_scope(self._session_factory, f"save event {event.id}") as session:
            session.merge(
                CalendarEventRow(id=event.id, start=event.start, end=event.end, type=event.type, title=event.title)
            )

    async def update(self, event: CalendarEvent) -> None:
        with _session_scope(self._session_factory, f"update event {event.id}") as session:
            row = session.get(CalendarEventRow, event.id)
            if row is None:
                raise StorageError(f"Cannot update missing event {event.id}")
            row.start = event.start
            row.end = event.end
            row.type = event.type
            row.title = event.title

    async def delete(self, event_id: str) -> None:
        with _session_scope(self._session_factory, f"delete event {event_id}") as session:
            session.execute(delete(CalendarEventRow).where(CalendarEventRow.id == event_id))


class SqlSubIntervalStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def get_all(self) -> list[SubInterval]:
        query = select(SubIntervalRow).order_by(SubIntervalRow.start, SubIntervalRow.parent_event_id)
        with _session_scope(self._session_factory, "load sub-intervals") as session:
            return [_to_sub_interval(r) for r in session.scalars(query)]

    async def get_by_parent_id(self, parent_event_id: str) -> list[SubInterval]:
        query = (
            select(SubIntervalRow)
            .where(SubIntervalRow.parent_event_id == parent_event_id)
            .order_by(SubIntervalRow.start)
        )
        with _session_scope(self._session_factory, f"load sub-intervals of {parent_event_id}") as session:
            return [_to_sub_interval(r) for r in session.scalars(query)]

    async def save(self, sub_intervals: list[SubInterval]) -> None:
        if not sub_intervals:
            return
        with _session_scope(self._session_factory, f"save {len(sub_intervals)} sub-intervals") as session:
            session.add_all(SubIntervalRow(**s.model_dump()) for s in sub_intervals)

    async def delete_by_parent_id(self, parent_event_id: str) -> None:
        with _session_scope(self._session_factory, f"delete sub-intervals of {parent_event_id}") as session:
            session.execute(delete(SubIntervalRow).where(SubIntervalRow.parent_event_id == parent_event_id))
