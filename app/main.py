# app/main.py
"""
FastAPI application entry point.
"""

import os
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.container import build_engine
from app.core.logging_config import get_logger, is_production, setup_logging
from app.core.request_logging import RequestLoggingMiddleware
from app.core.sentry_config import init_sentry
from app.database.database import SessionLocal, create_tables, get_db
from app.database.repositories import SqlEventStore, SqlSubIntervalStore
from app.routes.compensation import router as compensation_router
from app.routes.events import router as events_router

VERSION = "0.1.0"

# Setup logging FIRST (before any other imports that might log)
setup_logging()
logger = get_logger(__name__)

sentry_enabled = init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Application starting up",
        extra={"extra_fields": {"production": is_production(), "python_version": sys.version}},
    )

    try:
        create_tables()
        logger.info("Database tables created/verified")
    except SQLAlchemyError as e:
        logger.error("Failed to create database tables: %s", e, exc_info=True)
        raise

    # Rate file problems surface here rather than on the first request
    app.state.engine = build_engine(SqlEventStore(SessionLocal), SqlSubIntervalStore(SessionLocal))

    yield

    logger.info("Application shutting down")


app = FastAPI(
    title="On-call compensation",
    description="On-call and incident compensation engine",
    version=VERSION,
    lifespan=lifespan,
)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin.strip()]

if is_production():
    if not CORS_ORIGINS:
        logger.warning("Production mode but no CORS_ORIGINS set. CORS will block all cross-origin requests.")
    allowed_origins = CORS_ORIGINS
    allowed_methods = ["GET", "POST", "PUT", "DELETE"]
    logger.info("CORS configured for production with origins: %s", allowed_origins)
else:
    allowed_origins = ["*"]
    allowed_methods = ["*"]
    logger.info("CORS configured for development (permissive)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=allowed_methods,
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(events_router)
app.include_router(compensation_router)


@app.get("/health", tags=["health"])
async def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for monitoring.

    Returns 503 Service Unavailable if the database cannot be reached.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check failed - database connection error: %s", e, exc_info=True)
        raise HTTPException(
            status_code=503,
            detail={"status": "unhealthy", "service": "oncall-compensation", "database": "disconnected"},
        ) from e

    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "service": "oncall-compensation",
            "version": VERSION,
            "database": "connected",
        },
    )
