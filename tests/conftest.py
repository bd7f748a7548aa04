"""
Pytest configuration and shared fixtures for testing.

Provides reusable test fixtures:
- engine: compensation engine wired to in-memory stores
- make_event: CalendarEvent factory
- test_session_factory: in-memory SQLite database for repository tests
- test_client: FastAPI TestClient backed by the in-memory SQLite database
"""

import datetime
import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Keep the app's own database and log files out of the working tree
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="compensation-logs-"))

# ruff: noqa: E402
from app.core.container import build_engine
from app.core.models import CalendarEvent, EventType
from app.core.rates import resolve_rate_table
from app.database.database import Base, get_db, make_engine, make_session_factory
from app.database.repositories import SqlEventStore, SqlSubIntervalStore
from app.main import app
from app.routes.events import get_engine


def dt(text: str) -> datetime.datetime:
    """Parse "2025-01-04 22:00" style timestamps."""
    return datetime.datetime.fromisoformat(text)


@pytest.fixture
def make_event():
    """Factory for CalendarEvent with readable timestamps."""

    def _make(event_id: str, start: str, end: str, type: EventType = EventType.ONCALL, title: str | None = None):
        return CalendarEvent(id=event_id, start=dt(start), end=dt(end), type=type, title=title)

    return _make


@pytest.fixture
def engine():
    """Engine on in-memory stores with the default rate table."""
    return build_engine(rates=resolve_rate_table())


@pytest.fixture(scope="function")
def test_session_factory():
    """
    Create an in-memory SQLite database for testing.

    A fresh database per test; tables are dropped afterwards.
    """
    db_engine = make_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=db_engine)
    try:
        yield make_session_factory(db_engine)
    finally:
        Base.metadata.drop_all(bind=db_engine)
        db_engine.dispose()


@pytest.fixture(scope="function")
def sql_engine(test_session_factory):
    """Engine on the SQLAlchemy stores."""
    return build_engine(
        SqlEventStore(test_session_factory),
        SqlSubIntervalStore(test_session_factory),
        rates=resolve_rate_table(),
    )


@pytest.fixture(scope="function")
def test_client(test_session_factory, sql_engine):
    """
    FastAPI TestClient with the engine and database session overridden.
    """

    def override_get_db():
        db = test_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine] = lambda: sql_engine

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
