"""
Hoot API Backend: Rate Limiting Middleware
===========================================

What:  Sliding-window request limiter, in memory, per client IP.
How:   Each key keeps a deque of request timestamps. Timestamps older than
       the window are dropped from the left; if the remaining count has
       reached the limit the request is answered with 429 and Retry-After.

Client key:
    "ip:<address>". The limiter runs before the bearer token is verified,
    so request headers never pick the budget: rotating Authorization
    values from one address still share one window.

Limits:
    State lives in the process. With several workers each keeps its own
    counters, so the effective limit is per worker.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from hoot_api.config import settings
from hoot_api.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Configuration (from settings unless passed explicitly):
        rate_limit_requests: max requests per window per key
        rate_limit_window:   window length in seconds
    """

    EXCLUDED_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc"})

    # Sweep idle keys after this many recorded requests
    SWEEP_EVERY = 1000

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        key = client_key(request)
        now = time.monotonic()
        hits = self._hits[key]
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()

        if len(hits) >= self.max_requests:
            retry_after = max(1, int(hits[0] + self.window_seconds - now) + 1)
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                key, len(hits), self.window_seconds,
            )
            return self._reject(RateLimitExceededError(retry_after=retry_after))

        hits.append(now)
        self._recorded += 1
        if self._recorded % self.SWEEP_EVERY == 0:
            self._sweep(now)

        return await call_next(request)

    @staticmethod
    def _reject(exc: RateLimitExceededError) -> JSONResponse:
        # Middleware runs outside FastAPI's exception handlers, so the 429
        # body is built here in the same envelope the handlers use
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": exc.context,
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    def _sweep(self, now: float) -> None:
        idle = [
            key for key, hits in self._hits.items()
            if not hits or hits[-1] <= now - self.window_seconds
        ]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Dropped %d idle rate-limit keys", len(idle))
