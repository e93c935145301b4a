"""
DevOps Learning API: User Resource Model
========================================

What:  Typed record for the User resource and the validation rules applied
       before anything reaches the document store.
How:   Pydantic models describe the field rules; validate_user() and
       validate_update() run them and return either Valid(fields) or
       Invalid(violations), so callers branch on the result type instead of
       catching pydantic exceptions.
Who:   UserService runs validation; routes serialize User in responses.

Field rules:
    name    required, trimmed, non-empty
    email   required, trimmed, lower-cased, unique (enforced by the store)
    age     optional integer >= 0
    role    user | admin | moderator, defaults to user

Unknown fields in a payload are dropped, never stored.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator, model_serializer
from pydantic import ValidationError as PydanticValidationError

USERS_COLLECTION = "users"

# Fields a client may change through UpdateById
UPDATABLE_FIELDS = ("name", "email", "age", "role")


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"


class UserFields(BaseModel):
    """
    The client-controlled part of a User, validated and normalized.

    Whitespace stripping runs before the length constraints, so a name of
    only spaces fails min_length.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    # Strict: JSON true or "25" is a wrong type, not an age
    age: Optional[StrictInt] = Field(default=None, ge=0)
    role: Role = Role.USER

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, v: Any) -> Any:
        return Role.USER if v is None else v

    def to_document(self) -> Dict[str, Any]:
        """Store representation; an unset age is left out entirely."""
        return self.model_dump(mode="json", exclude_none=True)


class User(BaseModel):
    """
    A stored User as returned by the API.

    Serializes with camelCase timestamps and exposes the identifier both as
    `_id` (document store naming) and `id`.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    age: Optional[int] = None
    role: Role
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @model_serializer(mode="wrap")
    def _serialize(self, handler) -> Dict[str, Any]:
        data = handler(self)
        data["_id"] = self.id
        return data

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "User":
        return cls(
            id=str(doc["_id"]),
            name=doc["name"],
            email=doc["email"],
            age=doc.get("age"),
            role=doc.get("role") or Role.USER,
            created_at=doc["createdAt"],
            updated_at=doc["updatedAt"],
        )


# ══════════════════════════════════════════════════════════════════════════
# Validation Result
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Violation:
    field: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"


@dataclass(frozen=True)
class Valid:
    fields: UserFields


@dataclass(frozen=True)
class Invalid:
    violations: Tuple[Violation, ...]

    @property
    def message(self) -> str:
        return "User validation failed: " + ", ".join(str(v) for v in self.violations)

    @property
    def first_field(self) -> Optional[str]:
        return self.violations[0].field if self.violations else None


ValidationResult = Union[Valid, Invalid]


def validate_user(payload: Any) -> ValidationResult:
    """
    Validate a creation payload.

    Returns:
        Valid with normalized fields, or Invalid listing every violation.
    """
    if not isinstance(payload, Mapping):
        return Invalid((Violation("body", "must be a JSON object"),))
    try:
        return Valid(UserFields.model_validate(dict(payload)))
    except PydanticValidationError as e:
        return Invalid(_violations(e))


def validate_update(existing: Mapping[str, Any], changes: Any) -> ValidationResult:
    """
    Validate a partial update against the stored document.

    Only UPDATABLE_FIELDS are taken from `changes`; each supplied value
    replaces the stored one and the merged record is validated as a whole.
    """
    if not isinstance(changes, Mapping):
        return Invalid((Violation("body", "must be a JSON object"),))

    merged = {field: existing.get(field) for field in UPDATABLE_FIELDS}
    for field in UPDATABLE_FIELDS:
        if field in changes:
            merged[field] = changes[field]
    return validate_user(merged)


def _violations(error: PydanticValidationError) -> Tuple[Violation, ...]:
    violations = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "body"
        violations.append(Violation(field, _reason(field, item)))
    return tuple(violations)


def _reason(field: str, item: Mapping[str, Any]) -> str:
    kind = item["type"]
    if kind == "missing":
        return f"{field.capitalize()} is required"
    if kind == "string_too_short":
        return f"{field.capitalize()} cannot be empty"
    if kind == "greater_than_equal":
        return f"{field.capitalize()} must be a positive number"
    if kind == "int_type":
        return f"{field.capitalize()} must be an integer"
    if kind == "enum":
        return f"'{item.get('input')}' is not a valid role"
    return item["msg"]
