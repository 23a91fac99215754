"""
HealthAPI Backend — Request Logging Middleware
================================================

What:  One access-log line per request: method, path, status, duration,
       request ID and client address.
Why:   Uvicorn's access log has no request ID and no duration.

Privacy:
    Request and response bodies are never logged; they carry passwords,
    tokens and reset codes. Paths are logged, but GET /auth/confirmation/
    carries a token in the path, so that segment is masked.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("healthapi.access")

SKIPPED_PATHS = {"/health"}
_CONFIRMATION_PREFIX = "/auth/confirmation/"


def loggable_path(path: str) -> str:
    """Mask path segments that carry secrets."""
    if path.startswith(_CONFIRMATION_PREFIX):
        return _CONFIRMATION_PREFIX + "***"
    return path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Level by status class:
        5xx → ERROR, 4xx → WARNING, otherwise INFO.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        path = loggable_path(request.url.path)
        rid = request_id_var.get("")
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
