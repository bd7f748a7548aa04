# app/core/request_logging.py
"""
Request logging middleware for tracking all HTTP requests.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging_config import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with timing and status code, and tags the response
    with an ``X-Request-ID`` header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "%s %s - %d (%.2fms) - ERROR: %s",
                request.method,
                request.url.path,
                status_code,
                duration_ms,
                e,
                extra={"extra_fields": _log_fields(request, request_id, status_code, duration_ms)},
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        extra = {"extra_fields": _log_fields(request, request_id, status_code, duration_ms)}
        message = "%s %s - %d (%.2fms)"
        args = (request.method, request.url.path, status_code, duration_ms)

        if status_code >= 500:
            logger.error(message, *args, extra=extra)
        elif status_code >= 400:
            logger.warning(message, *args, extra=extra)
        elif request.url.path == "/health":
            logger.debug(message, *args, extra=extra)
        else:
            logger.info(message, *args, extra=extra)

        response.headers["X-Request-ID"] = request_id
        return response


def _log_fields(request: Request, request_id: str, status_code: int, duration_ms: float) -> dict:
    return {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
    }
