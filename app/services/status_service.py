"""
DevOps Learning API: Status Service
===================================

What:  Liveness, service info, and store diagnostics.
How:   Health and info are computed in-process and never fail. Stats reads
       the store client's connection state and counts the users collection.
Who:   Called by app/routes/health.py and app/routes/stats.py.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from app import __version__
from app.exceptions import StoreError
from app.models.user import USERS_COLLECTION
from app.store.base import DocumentStore

SERVICE_NAME = "DevOps Learning API"

ENDPOINTS = [
    "GET /",
    "GET /health",
    "GET /api/hello",
    "GET /api/stats",
    "GET /api/users",
    "POST /api/users",
    "GET /api/users/:id",
    "PUT /api/users/:id",
    "DELETE /api/users/:id",
]

# Process start, for uptime reporting
_start_time = time.monotonic()


def utc_timestamp() -> str:
    """ISO 8601 UTC timestamp with millisecond precision, e.g. 2024-01-15T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def uptime_seconds() -> float:
    return round(time.monotonic() - _start_time, 3)


class StatusService:

    def __init__(self, store: DocumentStore):
        self.store = store

    def health(self) -> Dict[str, Any]:
        return {
            "status": "OK",
            "message": "Service is healthy",
            "timestamp": utc_timestamp(),
            "uptime": uptime_seconds(),
        }

    def info(self) -> Dict[str, Any]:
        return {
            "message": f"Welcome to {SERVICE_NAME}",
            "version": __version__,
            "endpoints": list(ENDPOINTS),
        }

    def hello(self) -> Dict[str, Any]:
        return {
            "message": "Hello, DevOps World!",
            "timestamp": utc_timestamp(),
            "success": True,
        }

    async def stats(self) -> Dict[str, Any]:
        """
        Connection state and user count.

        Raises:
            StoreError: The count query failed (→ 500). The connection state
                is attached to the error context so the error envelope can
                still report it.
        """
        database = self._database_status()
        try:
            count = await self.store.count(USERS_COLLECTION)
        except StoreError as e:
            raise StoreError(
                message="Error fetching database stats",
                detail=e.error_text,
                context={"database": self._database_status()},
            ) from e

        return {
            "database": database,
            "users": {"count": count},
        }

    def _database_status(self) -> Dict[str, Any]:
        state = self.store.state
        return {
            "status": state.value,
            "state": state.code,
            "name": self.store.name,
        }
