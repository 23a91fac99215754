"""
HealthAPI Backend — Rate Limiting Middleware
==============================================

What:  Per-IP sliding-window request limit.
Why:   Bounds how fast a single client can guess passwords, 6-digit reset
       codes or confirmation tokens.
How:   SlidingWindow keeps the request timestamps of each client inside the
       last RATE_LIMIT_WINDOW seconds; a client at RATE_LIMIT_REQUESTS gets
       HTTP 429 with Retry-After.

Scope:
    State is per process. With several workers each one enforces the
    limit separately.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class SlidingWindow:
    """Timestamps per key within the last `window` seconds."""

    PRUNE_EVERY = 1000

    def __init__(self, limit: int, window: float):
        self.limit = limit
        self.window = window
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._calls = 0

    def hit(self, key: str, now: Optional[float] = None) -> int:
        """
        Record a request for `key`.

        Returns 0 when the request is allowed, otherwise the number of
        seconds until the oldest request leaves the window.
        """
        now = time.time() if now is None else now
        window_start = now - self.window
        hits = self._hits[key]
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.limit:
            return int(hits[0] + self.window - now) + 1

        hits.append(now)
        self._calls += 1
        if self._calls % self.PRUNE_EVERY == 0:
            self._prune(window_start)
        return 0

    def _prune(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Dropped %d idle rate-limit entries", len(idle))


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, limit: Optional[int] = None, window: Optional[float] = None):
        super().__init__(app)
        self.window = SlidingWindow(
            limit=limit or settings.rate_limit_requests,
            window=window or settings.rate_limit_window,
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        retry_after = self.window.hit(client_ip)
        if retry_after:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip,
                self.window.limit,
                self.window.window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
