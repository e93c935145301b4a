"""
DevOps Learning API: Request ID Middleware
==========================================

What:  Assigns an ID to each request and returns it in X-Request-ID.
How:   Reuses a client-supplied X-Request-ID or generates a short UUID,
       stores it in a ContextVar for loggers and exception handlers, and
       echoes it on the response.

Unhandled exceptions would otherwise escape to Starlette's outermost
ServerErrorMiddleware and produce a 500 without the header. When an
`on_error` responder is given, it renders that 500 here instead.
"""

import uuid
from contextvars import ContextVar
from typing import Awaitable, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

ErrorResponder = Callable[[Request, Exception], Awaitable[Response]]


class RequestIDMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, on_error: Optional[ErrorResponder] = None):
        super().__init__(app)
        self.on_error = on_error

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        except Exception as exc:
            if self.on_error is None:
                raise
            # Rendered while the ContextVar still holds this request's id
            response = await self.on_error(request, exc)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
