"""
DevOps Learning API: MongoDB Document Store
===========================================

What:  DocumentStore implementation backed by MongoDB through PyMongo's
       native asyncio client (AsyncMongoClient).
How:   Owns one client per application. Translates string ids to ObjectId,
       ObjectId back to strings, and driver exceptions to app exceptions.
Who:   Built by app.database.build_store() from settings; connected and
       disconnected by the application lifespan.

Connection state:
    disconnected ──connect()──▶ connecting ──ping ok──▶ connected
         ▲                           │
         └────────ping failed────────┘
    connected ──disconnect()──▶ disconnecting ──▶ disconnected

    A ConnectionFailure raised by any operation marks the client disconnected;
    the driver keeps reconnecting in the background and the next successful
    operation marks it connected again.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.errors import ConnectionFailure, PyMongoError
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from app.exceptions import (
    DuplicateKeyError,
    InvalidIdentifierError,
    StoreError,
    StoreUnavailableError,
)
from app.store.base import ConnectionState, Document, DocumentStore

logger = logging.getLogger(__name__)


class MongoStore(DocumentStore):
    """
    MongoDB client with an explicit connection lifecycle.

    Args:
        uri:              MongoDB connection string
        database_name:    Database used when the URI does not name one
        timeout_ms:       Server selection timeout applied to every call
    """

    def __init__(self, uri: str, database_name: str, timeout_ms: int = 5000):
        self._uri = uri
        self._default_database = database_name
        self._timeout_ms = timeout_ms
        self._client: Optional[AsyncMongoClient] = None
        self._db = None
        self._state = ConnectionState.DISCONNECTED

    @property
    def name(self) -> str:
        if self._db is not None:
            return self._db.name
        return self._default_database

    @property
    def state(self) -> ConnectionState:
        return self._state

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def connect(self) -> None:
        if self._client is not None:
            return

        self._state = ConnectionState.CONNECTING
        # serverSelectionTimeoutMS: every call fails after this long with no server
        # tz_aware: stored dates come back as UTC-aware datetimes, matching the
        #   aware datetimes the services write
        client: AsyncMongoClient = AsyncMongoClient(
            self._uri,
            serverSelectionTimeoutMS=self._timeout_ms,
            tz_aware=True,
        )
        # The client connects lazily; ping forces a round trip now
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            self._state = ConnectionState.DISCONNECTED
            await client.close()
            raise StoreUnavailableError(detail=str(e)) from e

        self._client = client
        # Database from the URI path, else the configured fallback name
        self._db = client.get_default_database(default=self._default_database)
        self._state = ConnectionState.CONNECTED
        logger.info("Connected to MongoDB database '%s'", self._db.name)

    async def disconnect(self) -> None:
        if self._client is None:
            return

        self._state = ConnectionState.DISCONNECTING
        try:
            await self._client.close()
        finally:
            self._client = None
            self._db = None
            self._state = ConnectionState.DISCONNECTED
        logger.info("Disconnected from MongoDB")

    # ── Primitives ────────────────────────────────────────────────────────

    async def ensure_unique_index(self, collection: str, field: str) -> None:
        async with self._guard("create_index"):
            await self._collection(collection).create_index(field, unique=True)

    async def insert_one(self, collection: str, document: Document) -> Document:
        doc = dict(document)
        doc.pop("_id", None)
        async with self._guard("insert"):
            result = await self._collection(collection).insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_public(doc)

    async def find_all(self, collection: str) -> List[Document]:
        async with self._guard("find"):
            # No sort: documents come back in the store's natural order
            docs = await self._collection(collection).find({}).to_list(None)
        return [_to_public(doc) for doc in docs]

    async def find_by_id(self, collection: str, document_id: str) -> Optional[Document]:
        oid = _object_id(document_id)
        async with self._guard("find_one"):
            doc = await self._collection(collection).find_one({"_id": oid})
        return _to_public(doc) if doc is not None else None

    async def update_by_id(
        self,
        collection: str,
        document_id: str,
        set_fields: Document,
        unset_fields: Iterable[str] = (),
    ) -> Optional[Document]:
        oid = _object_id(document_id)
        update = {}
        if set_fields:
            update["$set"] = dict(set_fields)
        unset = {field: "" for field in unset_fields}
        if unset:
            update["$unset"] = unset

        async with self._guard("update"):
            coll = self._collection(collection)
            if not update:
                doc = await coll.find_one({"_id": oid})
            else:
                # Atomic: the returned document reflects this write and nothing later
                doc = await coll.find_one_and_update(
                    {"_id": oid},
                    update,
                    return_document=ReturnDocument.AFTER,
                )
        return _to_public(doc) if doc is not None else None

    async def delete_by_id(self, collection: str, document_id: str) -> Optional[Document]:
        oid = _object_id(document_id)
        async with self._guard("delete"):
            doc = await self._collection(collection).find_one_and_delete({"_id": oid})
        return _to_public(doc) if doc is not None else None

    async def count(self, collection: str) -> int:
        async with self._guard("count"):
            return await self._collection(collection).count_documents({})

    # ── Helpers ───────────────────────────────────────────────────────────

    def _collection(self, name: str):
        if self._db is None:
            raise StoreUnavailableError()
        return self._db[name]

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Translate driver exceptions raised by one operation."""
        try:
            yield
        except MongoDuplicateKeyError as e:
            field, value = _duplicate_key(e)
            raise DuplicateKeyError(field, value, context={"operation": operation}) from e
        except ConnectionFailure as e:
            self._state = ConnectionState.DISCONNECTED
            logger.error("MongoDB connection lost during %s: %s", operation, e)
            raise StoreUnavailableError(
                detail=str(e), context={"operation": operation}
            ) from e
        except PyMongoError as e:
            logger.error("MongoDB %s failed: %s", operation, e)
            raise StoreError(
                message=f"Database {operation} failed",
                detail=str(e),
                context={"operation": operation},
            ) from e
        else:
            if self._client is not None:
                self._state = ConnectionState.CONNECTED


def _object_id(document_id: str) -> ObjectId:
    try:
        return ObjectId(document_id)
    except (InvalidId, TypeError) as e:
        raise InvalidIdentifierError(str(document_id)) from e


def _to_public(doc: Document) -> Document:
    out = dict(doc)
    out["_id"] = str(out["_id"])
    return out


def _duplicate_key(error: MongoDuplicateKeyError) -> Tuple[str, Any]:
    # Servers >= 4.2 report the offending key in details.keyValue
    key_value = (error.details or {}).get("keyValue") or {}
    if key_value:
        field, value = next(iter(key_value.items()))
        return field, value
    return "unknown", None
