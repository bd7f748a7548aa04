# app/core/storage.py
"""
Store interfaces consumed by the engine, in-memory implementations, and
JSON file loading for configuration.
"""

import asyncio
import datetime
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

from app.core.exceptions import StorageError
from app.core.models import CalendarEvent, EventType, SubInterval
from app.core.time_utils import overlaps

logger = logging.getLogger(__name__)


def load_json(file_path: Path) -> list[Any] | dict[str, Any]:
    """
    Read and parse JSON with robust error handling.
    Args:
        file_path: Path to the JSON file
    Returns:
        Parsed JSON data as list or dict
    Raises:
        StorageError: If file cannot be read or JSON is invalid
    """
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.exception("Failed to read JSON file %s", file_path)
        raise StorageError(f"Could not read JSON file {file_path}: {e}") from e

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.exception("Invalid JSON in file %s", file_path)
        raise StorageError(f"Invalid JSON in file {file_path}: {e}") from e


class EventStore(Protocol):
    """Calendar event repository."""

    async def get_all(self) -> list[CalendarEvent]: ...

    async def get_by_id(self, event_id: str) -> CalendarEvent | None: ...

    async def get_by_date_range(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        types: Iterable[EventType] | None = None,
    ) -> list[CalendarEvent]: ...

    async def get_holidays(self) -> list[CalendarEvent]: ...

    async def save(self, event: CalendarEvent) -> None: ...

    async def update(self, event: CalendarEvent) -> None: ...

    async def delete(self, event_id: str) -> None: ...


class SubIntervalStore(Protocol):
    """Sub-interval repository."""

    async def get_all(self) -> list[SubInterval]: ...

    async def get_by_parent_id(self, parent_event_id: str) -> list[SubInterval]: ...

    async def save(self, sub_intervals: list[SubInterval]) -> None: ...

    async def delete_by_parent_id(self, parent_event_id: str) -> None: ...


def _event_sort_key(event: CalendarEvent) -> tuple[datetime.datetime, str]:
    return event.start, event.id


class InMemoryEventStore:
    """Dict-backed EventStore."""

    def __init__(self, events: Iterable[CalendarEvent] = ()):
        self._events: dict[str, CalendarEvent] = {e.id: e for e in events}

    async def get_all(self) -> list[CalendarEvent]:
        await asyncio.sleep(0)
        return sorted(self._events.values(), key=_event_sort_key)

    async def get_by_id(self, event_id: str) -> CalendarEvent | None:
        await asyncio.sleep(0)
        return self._events.get(event_id)

    async def get_by_date_range(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        types: Iterable[EventType] | None = None,
    ) -> list[CalendarEvent]:
        await asyncio.sleep(0)
        wanted = set(types) if types is not None else None
        return sorted(
            (
                e
                for e in self._events.values()
                if (wanted is None or e.type in wanted) and overlaps(e.start, e.end, start, end)
            ),
            key=_event_sort_key,
        )

    async def get_holidays(self) -> list[CalendarEvent]:
        await asyncio.sleep(0)
        return sorted((e for e in self._events.values() if e.type == EventType.HOLIDAY), key=_event_sort_key)

    async def save(self, event: CalendarEvent) -> None:
        await asyncio.sleep(0)
        self._events[event.id] = event

    async def update(self, event: CalendarEvent) -> None:
        await asyncio.sleep(0)
        if event.id not in self._events:
            raise StorageError(f"Cannot update missing event {event.id}")
        self._events[event.id] = event

    async def delete(self, event_id: str) -> None:
        await asyncio.sleep(0)
        self._events.pop(event_id, None)


class InMemorySubIntervalStore:
    """Dict-backed SubIntervalStore, grouped by parent id."""

    def __init__(self, sub_intervals: Iterable[SubInterval] = ()):
        self._by_parent: dict[str, list[SubInterval]] = {}
        for sub in sub_intervals:
            self._by_parent.setdefault(sub.parent_event_id, []).append(sub)

    async def get_all(self) -> list[SubInterval]:
        await asyncio.sleep(0)
        return sorted(
            (s for subs in self._by_parent.values() for s in subs),
            key=lambda s: (s.start, s.parent_event_id),
        )

    async def get_by_parent_id(self, parent_event_id: str) -> list[SubInterval]:
        await asyncio.sleep(0)
        return sorted(self._by_parent.get(parent_event_id, []), key=lambda s: s.start)

    async def save(self, sub_intervals: list[SubInterval]) -> None:
        await asyncio.sleep(0)
        for sub in sub_intervals:
            self._by_parent.setdefault(sub.parent_event_id, []).append(sub)

    async def delete_by_parent_id(self, parent_event_id: str) -> None:
        await asyncio.sleep(0)
        self._by_parent.pop(parent_event_id, None)
