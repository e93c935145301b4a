"""
DevOps Learning API: Request Logging Middleware
===============================================

What:  One access log line per HTTP request.
How:   Times the downstream call and logs method, path, status, duration,
       request id and client address. Level follows the status class:
       5xx ERROR, 4xx WARNING, otherwise INFO.
When:  Runs inside RequestIDMiddleware so the request id is available.

Requests that raise past the exception handlers are logged as status 500
before the error continues to the server error middleware.

Request bodies are never logged (they carry user emails).
"""

import logging
import time
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("devops_api.access")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access log for everything except health probes, which orchestrators
    poll every few seconds.
    """

    SKIPPED_PATHS = frozenset({"/health"})

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.SKIPPED_PATHS:
            return await call_next(request)

        fields: Dict[str, Any] = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        }
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self._log(fields, 500, started)
            raise

        self._log(fields, response.status_code, started)
        return response

    @staticmethod
    def _log(fields: Dict[str, Any], status: int, started: float) -> None:
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.log(
            level_for_status(status),
            "%s %s -> %d in %.1fms (rid=%s, client=%s)",
            fields["method"],
            fields["path"],
            status,
            duration_ms,
            fields["request_id"],
            fields["client_ip"],
            extra={**fields, "status": status, "duration_ms": duration_ms},
        )
