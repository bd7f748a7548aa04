"""
SQLAlchemy database setup and tables.
"""

import os

from sqlalchemy import Boolean, Column, DateTime, Index, String, create_engine
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.models import EventType

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./compensation.db")

Base = declarative_base()


def make_engine(url: str):
    """Create an engine; SQLite in-memory databases share one connection."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url)


def make_session_factory(bind) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)


class CalendarEventRow(Base):
    """Stored calendar event (on-call shift, incident or holiday)."""

    __tablename__ = "calendar_events"

    id = Column(String(64), primary_key=True)
    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=False)
    type = Column(SQLEnum(EventType), nullable=False, index=True)
    title = Column(String(255), nullable=True)

    __table_args__ = (Index("ix_calendar_events_range", "start", "end"),)

    def __repr__(self):
        return f"<CalendarEventRow(id={self.id}, type={self.type}, start={self.start}, end={self.end})>"


class SubIntervalRow(Base):
    """Stored hour-aligned piece of a calendar event."""

    __tablename__ = "sub_intervals"

    id = Column(String(64), primary_key=True)
    parent_event_id = Column(String(64), nullable=False, index=True)
    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=False)
    is_weekday = Column(Boolean, nullable=False)
    is_weekend = Column(Boolean, nullable=False)
    is_holiday = Column(Boolean, nullable=False, default=False)
    is_night_shift = Column(Boolean, nullable=False)
    is_office_hours = Column(Boolean, nullable=False)
    type = Column(SQLEnum(EventType), nullable=False)

    def __repr__(self):
        return f"<SubIntervalRow(id={self.id}, parent={self.parent_event_id}, start={self.start})>"


def create_tables(bind=None):
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
