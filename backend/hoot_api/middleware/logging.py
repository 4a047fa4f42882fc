"""
Hoot API Backend: Request Logging Middleware
=============================================

What:  One access-log line per HTTP request on the `hoot_api.access` logger.
How:   Times the downstream call and logs method, path, status, duration,
       request id, caller id (when authenticated) and client ip. The level
       follows the status class: 5xx → ERROR, 4xx → WARNING, else INFO.

Request and response bodies are never logged; hoot and comment text is
user content.

Example line:
    2026-10-16T12:00:00 [INFO] hoot_api.access: PUT /hoots/6f0c... 200 12.4ms [1a2b3c4d] user=65a1... from 10.0.0.7
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from hoot_api.middleware.request_id import request_id_var

logger = logging.getLogger("hoot_api.access")

# Probes hit these every few seconds
QUIET_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("") or getattr(request.state, "request_id", "")
        # Set by get_current_user once the bearer token has been verified
        user_id = getattr(request.state, "user_id", None) or "-"
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id,
                "client_ip": client_ip,
            },
        )
        return response
