"""
OneSim Backend: Request ID Middleware
=====================================

What:  Gives every HTTP request a correlation ID and returns it in the
       X-Request-ID response header.
How:   A client-supplied X-Request-ID is kept when it is a short token of
       letters, digits, dot, dash or underscore; anything else is replaced
       by a generated short UUID so it cannot forge log lines. The ID lives in a ContextVar so loggers and exception
       handlers can read it without the Request object.
When:  Outermost of the application middlewares.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_CLIENT_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")


def resolve_request_id(supplied: str | None) -> str:
    if supplied and _CLIENT_ID.fullmatch(supplied):
        return supplied
    return str(uuid.uuid4())[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign or propagate X-Request-ID for every HTTP request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get("X-Request-ID"))

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
