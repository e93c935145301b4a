"""
DevOps Learning API: Abstract Document Store Interface
======================================================

What:  Abstract base class defining the contract between the services and a
       document database.
How:   Concrete implementations inherit from DocumentStore and implement the
       connection lifecycle plus single-document CRUD primitives over a named
       collection.
Who:   Constructed by the application factory and injected into UserService
       and StatusService.

Document shape:
    Documents cross this boundary as plain dicts. The identifier is always
    under "_id" as a string; implementations translate to and from their
    native id type. Every operation targets at most one document.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

Document = Dict[str, Any]


class ConnectionState(str, Enum):
    """
    Connection state of a store client.

    The numeric codes follow the ready-state convention used by MongoDB
    drivers: 0 disconnected, 1 connected, 2 connecting, 3 disconnecting.
    """

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTING = "disconnecting"

    @property
    def code(self) -> int:
        return _STATE_CODES[self]


_STATE_CODES = {
    ConnectionState.DISCONNECTED: 0,
    ConnectionState.CONNECTED: 1,
    ConnectionState.CONNECTING: 2,
    ConnectionState.DISCONNECTING: 3,
}


class DocumentStore(ABC):
    """
    Abstract interface for a document database client.

    Contract:
        - connect()/disconnect() drive `state` through CONNECTING/DISCONNECTING
        - Every primitive raises StoreUnavailableError when not connected
        - A malformed id raises InvalidIdentifierError
        - A unique index violation raises DuplicateKeyError
        - Any other driver failure is wrapped in StoreError
        - Lookups by id return None (never raise) when the document is absent
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the database this client talks to."""
        ...

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        ...

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the connection and verify the server answers.

        Raises:
            StoreUnavailableError: The server could not be reached.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...

    @abstractmethod
    async def ensure_unique_index(self, collection: str, field: str) -> None:
        """Create a unique index on `field` if it does not exist yet."""
        ...

    @abstractmethod
    async def insert_one(self, collection: str, document: Document) -> Document:
        """
        Insert a document; the store assigns its identifier.

        Returns:
            The stored document, including "_id".
        """
        ...

    @abstractmethod
    async def find_all(self, collection: str) -> List[Document]:
        """Every document of the collection, in store-defined order."""
        ...

    @abstractmethod
    async def find_by_id(self, collection: str, document_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def update_by_id(
        self,
        collection: str,
        document_id: str,
        set_fields: Document,
        unset_fields: Iterable[str] = (),
    ) -> Optional[Document]:
        """
        Set and unset fields of one document atomically.

        Returns:
            The document as it is after the update, or None if absent.
        """
        ...

    @abstractmethod
    async def delete_by_id(self, collection: str, document_id: str) -> Optional[Document]:
        """
        Remove one document.

        Returns:
            The document as it was before removal, or None if absent.
        """
        ...

    @abstractmethod
    async def count(self, collection: str) -> int:
        ...
