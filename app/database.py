"""
DevOps Learning API: Store Construction and Request Dependencies
================================================================

What:  Builds the document store client from settings and exposes it to
       route handlers through FastAPI dependencies.
How:   create_app() stores one DocumentStore on app.state; the dependencies
       below read it from the incoming request. There is no module-level
       connection handle, so tests build an app around any DocumentStore.
Who:   Route handlers via Depends(); the lifespan in main.py for
       connect/disconnect.
"""

import logging

from fastapi import Request

from app.config import Settings
from app.exceptions import StoreError
from app.services.status_service import StatusService
from app.services.user_service import UserService
from app.store.base import DocumentStore
from app.store.mongo import MongoStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> DocumentStore:
    """Create the MongoDB client for these settings (no I/O until connect())."""
    return MongoStore(
        uri=settings.mongodb_uri,
        database_name=settings.database_name,
        timeout_ms=settings.mongodb_timeout_ms,
    )


async def open_store(store: DocumentStore) -> bool:
    """
    Connect the store and prepare its indexes.

    Failures are logged, not raised: the process keeps serving health
    checks. A failed connection leaves store-backed endpoints answering 500.
    A failed index build leaves the store connected but without the unique
    email index, so duplicates are no longer rejected by the store.

    Returns:
        True if the store is connected and indexed.
    """
    try:
        await store.connect()
    except StoreError as e:
        logger.error("MongoDB connection error: %s", e.error_text)
        return False

    try:
        await UserService(store).ensure_indexes()
    except StoreError as e:
        # e.g. existing documents already share an email
        logger.error("MongoDB index creation failed on %s: %s", store.name, e.error_text)
        return False
    return True


async def close_store(store: DocumentStore) -> None:
    await store.disconnect()


# ── Request Dependencies ──────────────────────────────────────────────────

def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_user_service(request: Request) -> UserService:
    return UserService(get_store(request))


def get_status_service(request: Request) -> StatusService:
    return StatusService(get_store(request))
