"""
DevOps Learning API: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all
       tests. No MongoDB is needed: the application is built around
       InMemoryStore, a DocumentStore kept in dicts.

Fixtures:
    ├── store:              Connected InMemoryStore with the email index
    ├── disconnected_store: InMemoryStore that was never connected
    ├── settings:           Development-mode Settings
    ├── app:                FastAPI app wired to `store`
    ├── test_client:        HTTPX AsyncClient talking to `app`
    └── sample_user:        Valid creation payload
"""

import copy
import os
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

# Before any app import, so the module-level settings never see a real deployment
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "development"
os.environ["MONGODB_URI"] = "mongodb://localhost:27017/devops-learning-test"

from app.config import Settings  # noqa: E402
from app.exceptions import (  # noqa: E402
    DuplicateKeyError,
    InvalidIdentifierError,
    StoreUnavailableError,
)
from app.main import create_app  # noqa: E402
from app.models.user import USERS_COLLECTION  # noqa: E402
from app.store.base import ConnectionState, Document, DocumentStore  # noqa: E402


class InMemoryStore(DocumentStore):
    """
    Dict-backed DocumentStore honoring the same contract as MongoStore:
    ObjectId-shaped ids, unique indexes, state checks, copies in and out.
    """

    def __init__(self, name: str = "devops-learning-test"):
        self._name = name
        self._state = ConnectionState.DISCONNECTED
        self._collections: Dict[str, Dict[str, Document]] = defaultdict(dict)
        self._unique: Dict[str, Set[str]] = defaultdict(set)

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def connect(self) -> None:
        self._state = ConnectionState.CONNECTED

    async def disconnect(self) -> None:
        self._state = ConnectionState.DISCONNECTED

    async def ensure_unique_index(self, collection: str, field: str) -> None:
        self._require_connection()
        self._unique[collection].add(field)

    async def insert_one(self, collection: str, document: Document) -> Document:
        self._require_connection()
        doc = copy.deepcopy(dict(document))
        doc["_id"] = str(ObjectId())
        self._check_unique(collection, doc)
        self._collections[collection][doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def find_all(self, collection: str) -> List[Document]:
        self._require_connection()
        return [copy.deepcopy(doc) for doc in self._collections[collection].values()]

    async def find_by_id(self, collection: str, document_id: str) -> Optional[Document]:
        key = self._key(document_id)
        doc = self._collections[collection].get(key)
        return copy.deepcopy(doc) if doc is not None else None

    async def update_by_id(
        self,
        collection: str,
        document_id: str,
        set_fields: Document,
        unset_fields: Iterable[str] = (),
    ) -> Optional[Document]:
        key = self._key(document_id)
        current = self._collections[collection].get(key)
        if current is None:
            return None
        candidate = copy.deepcopy(current)
        candidate.update(copy.deepcopy(dict(set_fields)))
        for field in unset_fields:
            candidate.pop(field, None)
        self._check_unique(collection, candidate)
        self._collections[collection][key] = candidate
        return copy.deepcopy(candidate)

    async def delete_by_id(self, collection: str, document_id: str) -> Optional[Document]:
        key = self._key(document_id)
        return self._collections[collection].pop(key, None)

    async def count(self, collection: str) -> int:
        self._require_connection()
        return len(self._collections[collection])

    def _require_connection(self) -> None:
        if self._state != ConnectionState.CONNECTED:
            raise StoreUnavailableError()

    def _key(self, document_id: str) -> str:
        self._require_connection()
        if not ObjectId.is_valid(document_id):
            raise InvalidIdentifierError(str(document_id))
        return str(ObjectId(document_id))

    def _check_unique(self, collection: str, doc: Document) -> None:
        for field in self._unique[collection]:
            if field not in doc:
                continue
            for other in self._collections[collection].values():
                if other["_id"] != doc["_id"] and other.get(field) == doc[field]:
                    raise DuplicateKeyError(field, doc[field])


@pytest_asyncio.fixture
async def store():
    """Connected in-memory store with the users email index in place."""
    s = InMemoryStore()
    await s.connect()
    await s.ensure_unique_index(USERS_COLLECTION, "email")
    return s


@pytest.fixture
def disconnected_store():
    return InMemoryStore()


@pytest.fixture
def settings():
    return Settings(environment="development", log_level="WARNING")


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_user():
    return {
        "name": "Test User",
        "email": "test@example.com",
        "age": 25,
        "role": "user",
    }
