# app/core/sentry_config.py
"""
Sentry error tracking, enabled in production when SENTRY_DSN is set.
"""

import logging
import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from app.core.logging_config import is_production

logger = logging.getLogger(__name__)

DEFAULT_RELEASE = "oncall-compensation@0.1.0"


def init_sentry() -> bool:
    """
    Initialize Sentry error tracking.

    Returns:
        True if Sentry was initialized, False otherwise.
    """
    sentry_dsn = os.getenv("SENTRY_DSN", "").strip()

    if not is_production():
        logger.info("Sentry disabled in development mode")
        return False

    if not sentry_dsn:
        logger.warning("SENTRY_DSN not set. Error tracking disabled.")
        return False

    environment = os.getenv("SENTRY_ENVIRONMENT", "production")
    sentry_sdk.init(
        dsn=sentry_dsn,
        integrations=[
            FastApiIntegration(),
            StarletteIntegration(),
            # Breadcrumbs from INFO, events from ERROR (facade storage failures, ripple errors)
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=0.1,
        sample_rate=1.0,
        release=os.getenv("RELEASE_VERSION", DEFAULT_RELEASE),
        environment=environment,
        send_default_pii=False,
        attach_stacktrace=True,
        before_send=before_send_hook,
    )
    logger.info("Sentry initialized (environment: %s)", environment)
    return True


def before_send_hook(event, hint):
    """
    Filter sensitive headers before sending to Sentry.
    """
    headers = event.get("request", {}).get("headers")
    if headers:
        for header in ("cookie", "authorization", "x-api-key"):
            if header in headers:
                headers[header] = "[Filtered]"
    return event
