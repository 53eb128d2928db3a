"""
Storefront Backend — Request Logging Middleware
=================================================

What:  One access-log line per HTTP request.
How:   Times the request, then logs method, path, status, duration and the
       authenticated user (set on request.state by `require_auth`) at a level
       chosen by status class.
When:  Runs after RequestIDMiddleware, so the request ID is available.

What we log vs what we DON'T log:
    Log: method, path, status, duration, client IP, request ID, user id
    Don't log: request bodies (passwords), Authorization headers, file contents

Example line:
    PUT /api/users/update 200 41.3ms [1f2e3d4c] user=9b1d... from 10.0.0.7
"""

import logging
import time
from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.middleware.request_id import request_id_var

logger = logging.getLogger("storefront.access")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with its status code and duration.

    Levels:
        5xx → ERROR
        4xx → WARNING
        2xx/3xx → INFO
    Paths in `skip_paths` (default /health, which probes hit every few
    seconds) are not logged.
    """

    def __init__(self, app: ASGIApp, skip_paths: Iterable[str] = ("/health",)):
        super().__init__(app)
        self.skip_paths = frozenset(skip_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.skip_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s failed after %.1fms [%s]",
                request.method,
                path,
                (time.perf_counter() - start_time) * 1000,
                rid,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        user_id = getattr(request.state, "user_id", None)

        logger.log(
            level_for_status(response.status_code),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            rid,
            user_id or "-",
            client_ip,
            extra={
                "request_id": rid,
                "user_id": str(user_id) if user_id else None,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
