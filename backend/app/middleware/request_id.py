"""
Shutterfeed Backend — Request ID Middleware
============================================

What:  Gives every request a short correlation id.
How:   Reuses the client's X-Request-ID header when present, otherwise
       generates one. The id lives in a ContextVar (read by the access log
       and the exception handlers) and is echoed in the response header.
Who:   Installed by create_app(); read by RequestLoggingMiddleware and by
       every handler in register_exception_handlers().
When:  Runs inside the rate limiter and outside the access log, so a 429
       carries no id but every logged request does.

Correlation:
    A failed comment post returns {"error", "message", "request_id"}. The
    same id is on the access log line and on the error handler's log line,
    so "request 3f9c2a1b failed" leads to the 403 or 404 that was raised.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
