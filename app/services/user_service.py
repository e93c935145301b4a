"""
DevOps Learning API: User Service (Resource Handler Logic)
==========================================================

What:  The five CRUD operations over the User resource.
How:   Validates input with the User model, calls the injected DocumentStore,
       and shapes stored documents into User records.
Who:   Called by the route handlers in app/routes/users.py.

Error translation (per operation):
    Operation    duplicate email   malformed id   absent id   other store error
    create       ValidationError   -              -           StoreError
    list_all     -                 -              -           StoreError
    get_by_id    -                 StoreError     NotFound    StoreError
    update_by_id ValidationError   ValidationError NotFound   StoreError
    delete_by_id -                 StoreError     NotFound    StoreError

    ValidationError → 400, NotFoundError → 404, StoreError → 500.
    No operation retries; each store failure ends the request.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List

from app.exceptions import (
    DuplicateKeyError,
    InvalidIdentifierError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from app.models.user import (
    UPDATABLE_FIELDS,
    USERS_COLLECTION,
    Invalid,
    User,
    validate_update,
    validate_user,
)
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)

# Smallest timestamp step the store keeps (BSON dates are millisecond precision)
_TIMESTAMP_RESOLUTION = timedelta(milliseconds=1)


def _now() -> datetime:
    """Current UTC time truncated to the store's millisecond precision."""
    # BSON dates drop sub-millisecond digits on write. Truncating here keeps
    # the returned User equal to what a later read returns.
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class UserService:
    """
    Business logic for the User resource.

    The store client is passed in at construction; the service holds no
    other state.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def ensure_indexes(self) -> None:
        await self.store.ensure_unique_index(USERS_COLLECTION, "email")

    async def create(self, payload: Any) -> User:
        """
        Validate and persist a new User.

        Raises:
            ValidationError: Payload invalid or email already registered (→ 400)
            StoreError: Store unreachable or write failed (→ 500)
        """
        result = validate_user(payload)
        if isinstance(result, Invalid):
            raise ValidationError(
                message="Error creating user",
                detail=result.message,
                field=result.first_field,
            )

        now = _now()
        document = result.fields.to_document()
        document["createdAt"] = now
        document["updatedAt"] = now

        try:
            stored = await self.store.insert_one(USERS_COLLECTION, document)
        except DuplicateKeyError as e:
            raise ValidationError(
                message="Error creating user",
                detail=e.detail,
                field=e.field,
            ) from e
        except StoreError as e:
            raise StoreError(message="Error creating user", detail=e.error_text) from e

        user = User.from_document(stored)
        logger.info("User created: %s", user.id)
        return user

    async def list_all(self) -> List[User]:
        try:
            documents = await self.store.find_all(USERS_COLLECTION)
        except StoreError as e:
            raise StoreError(message="Error fetching users", detail=e.error_text) from e
        return [User.from_document(doc) for doc in documents]

    async def get_by_id(self, user_id: str) -> User:
        """
        Raises:
            NotFoundError: No User with this id (→ 404)
            StoreError: Malformed id or store failure (→ 500)
        """
        try:
            document = await self.store.find_by_id(USERS_COLLECTION, user_id)
        except StoreError as e:
            raise StoreError(message="Error fetching user", detail=e.error_text) from e
        if document is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return User.from_document(document)

    async def update_by_id(self, user_id: str, changes: Any) -> User:
        """
        Apply a partial update.

        Only whitelisted fields are read from `changes`; the merged record is
        re-validated before anything is written. `updatedAt` always moves
        forward, even when two updates land within the same millisecond.

        Raises:
            ValidationError: Invalid merge result, duplicate email, or
                malformed id (→ 400)
            NotFoundError: No User with this id (→ 404)
            StoreError: Store failure (→ 500)
        """
        try:
            existing = await self.store.find_by_id(USERS_COLLECTION, user_id)
        except InvalidIdentifierError as e:
            raise ValidationError(
                message="Error updating user", detail=e.detail, field="id"
            ) from e
        except StoreError as e:
            raise StoreError(message="Error updating user", detail=e.error_text) from e
        if existing is None:
            raise NotFoundError(resource="User", resource_id=user_id)

        result = validate_update(existing, changes)
        if isinstance(result, Invalid):
            raise ValidationError(
                message="Error updating user",
                detail=result.message,
                field=result.first_field,
            )

        # Write only supplied fields; others may have changed since the read
        validated = result.fields.to_document()
        supplied = [f for f in UPDATABLE_FIELDS if f in changes]
        set_fields = {f: validated[f] for f in supplied if f in validated}
        unset_fields = [f for f in supplied if f not in validated]
        set_fields["updatedAt"] = max(_now(), existing["updatedAt"] + _TIMESTAMP_RESOLUTION)

        try:
            updated = await self.store.update_by_id(
                USERS_COLLECTION, user_id, set_fields, unset_fields
            )
        except DuplicateKeyError as e:
            raise ValidationError(
                message="Error updating user", detail=e.detail, field=e.field
            ) from e
        except StoreError as e:
            raise StoreError(message="Error updating user", detail=e.error_text) from e

        # Deleted between the read and the write
        if updated is None:
            raise NotFoundError(resource="User", resource_id=user_id)

        user = User.from_document(updated)
        logger.info("User updated: %s", user.id)
        return user

    async def delete_by_id(self, user_id: str) -> User:
        """
        Remove a User and return its last state.

        Raises:
            NotFoundError: No User with this id (→ 404)
            StoreError: Malformed id or store failure (→ 500)
        """
        try:
            document = await self.store.delete_by_id(USERS_COLLECTION, user_id)
        except StoreError as e:
            raise StoreError(message="Error deleting user", detail=e.error_text) from e
        if document is None:
            raise NotFoundError(resource="User", resource_id=user_id)

        logger.info("User deleted: %s", user_id)
        return User.from_document(document)
