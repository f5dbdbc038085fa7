"""
OneSim Backend: Request Logging Middleware
==========================================

What:  One access-log line per HTTP request.
How:   Measures the time spent in the rest of the stack and logs method,
       path, status, duration, response size, request ID and client IP on
       the `onesim.access` logger. A request whose handler raised is logged
       as 500 before the error continues to the server error handler.
When:  Inside RequestIDMiddleware, so the request ID is already set.

Level by outcome:
    5xx → ERROR
    4xx → WARNING
    else → INFO

Request bodies are never logged: login and signup carry passwords.
WebSocket sessions never reach this middleware (HTTP scopes only); the
broadcaster logs connects and disconnects itself.
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from onesim.middleware.request_id import request_id_var

logger = logging.getLogger("onesim.access")

# Probed every few seconds by load balancers
_QUIET_PATHS = {"/health"}


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request with its status and duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, start_time, None)
            raise

        self._log(request, response.status_code, start_time, response.headers.get("content-length"))
        return response

    def _log(
        self,
        request: Request,
        status: int,
        start_time: float,
        size: Optional[str],
    ) -> None:
        duration_ms = (time.perf_counter() - start_time) * 1000
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms %sB [%s] from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            size or "-",
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "response_bytes": int(size) if size and size.isdigit() else None,
                "client_ip": client_ip,
            },
        )
