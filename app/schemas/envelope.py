"""
DevOps Learning API: Response Schemas
=====================================

What:  Pydantic models for every JSON body the API returns.
How:   Routes declare these as response_model; FastAPI validates and
       serializes them and they feed the OpenAPI docs. Error envelopes are
       built by the exception handlers in main.py with the same fields.

Envelope:
    {
        "success": true,
        "message": "Users retrieved successfully",
        "data": [...],
        "count": 2
    }
    Optional fields (data, count, error) are omitted when unset.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Uniform wrapper for resource responses."""

    success: bool = Field(description="Whether the operation succeeded")
    message: str = Field(description="Human-readable outcome")
    data: Optional[T] = Field(default=None, description="Resource payload")
    count: Optional[int] = Field(default=None, description="Number of items in data")
    error: Optional[str] = Field(default=None, description="Technical error detail")


class HealthResponse(BaseModel):
    status: str = Field(description="Always 'OK' while the process is serving")
    message: str
    timestamp: str = Field(description="Current time (UTC ISO 8601)")
    uptime: float = Field(description="Seconds since the process started")


class InfoResponse(BaseModel):
    message: str
    version: str
    endpoints: List[str]


class HelloResponse(BaseModel):
    message: str
    timestamp: str
    success: bool


class DatabaseStatus(BaseModel):
    status: str = Field(description="disconnected, connected, connecting or disconnecting")
    state: int = Field(description="Numeric ready state: 0, 1, 2 or 3")
    name: str = Field(description="Database name")


class UserCount(BaseModel):
    count: int


class StatsData(BaseModel):
    database: DatabaseStatus
    users: UserCount


class ErrorResponse(BaseModel):
    """
    Envelope returned for every failure (documentation model; the body is
    built by the exception handlers in main.py).
    """

    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")
    error: Optional[str] = Field(
        default=None,
        description="Technical detail; generic for server errors in production",
    )
