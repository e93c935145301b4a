"""
DevOps Learning API: Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the failure modes of a request.
How:   Each exception carries a human-readable message, an optional technical
       detail, and an optional context dict. Global exception handlers
       (registered in main.py) catch these and render the response envelope
       with the matching HTTP status code.
Who:   Raised by the store client and the services; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    DevOpsAPIError (base)
    ├── ValidationError             → 400 Bad Request
    ├── NotFoundError               → 404 Not Found
    └── StoreError                  → 500 Internal Server Error
        ├── StoreUnavailableError   (no connection / connection lost)
        ├── InvalidIdentifierError  (id is not a well-formed document id)
        └── DuplicateKeyError       (unique index violation)

Envelope rendered for every error:
    {
        "success": false,
        "message": "Error creating user",
        "error": "email 'test@example.com' already exists"
    }
"""

from typing import Any, Dict, Optional


class DevOpsAPIError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing description, returned as the envelope `message`
        detail:   Technical description, returned as the envelope `error`
                  (subject to production redaction for server errors)
        context:  Additional debug info, logged but not returned
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.detail = detail
        self.context = context or {}
        super().__init__(self.message)

    @property
    def error_text(self) -> str:
        return self.detail or self.message


class ValidationError(DevOpsAPIError):
    """
    Raised when client input fails validation.

    When:    Missing required field, negative age, unknown role, duplicate
             email, malformed id in an update, malformed JSON body.
    HTTP:    400 Bad Request. The detail is always returned to the client.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        detail: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, detail=detail, context=ctx)
        self.field = field


class NotFoundError(DevOpsAPIError):
    """
    Raised when a requested document does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class StoreError(DevOpsAPIError):
    """
    Raised when a document store operation fails.

    HTTP:    500 Internal Server Error. In production the technical detail is
             replaced with a generic string; it is always logged server-side.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, detail=detail, context=context)


class StoreUnavailableError(StoreError):
    """The store client is not connected or lost its connection mid-call."""

    def __init__(
        self,
        detail: str = "Database is not connected",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="Database unavailable", detail=detail, context=context)


class InvalidIdentifierError(StoreError):
    """The supplied id cannot be a document identifier."""

    def __init__(self, document_id: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["document_id"] = document_id
        super().__init__(
            message="Invalid identifier",
            detail=f"Cast to ObjectId failed for value \"{document_id}\"",
            context=ctx,
        )
        self.document_id = document_id


class DuplicateKeyError(StoreError):
    """A write violated a unique index."""

    def __init__(
        self,
        field: str,
        value: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["field"] = field
        detail = f"Duplicate value for unique field '{field}'"
        if value is not None:
            detail = f"{field} '{value}' already exists"
        super().__init__(message="Duplicate key", detail=detail, context=ctx)
        self.field = field
        self.value = value
