# =============================================================================
# core/models/user.py - User Schemas
# =============================================================================
# These models define the API contract for user operations:
# - UserCreate: Input for registering a user
# - UserResponse: Output when returning user data to clients
# - ApiResponse: Envelope wrapping every successful users response
# - ResponseStatus: Envelope status flag
# =============================================================================

from enum import IntEnum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field

T = TypeVar("T")


class ResponseStatus(IntEnum):
    """
    Outcome flag carried in the response envelope.

    - 1: the operation succeeded
    - 0: the operation failed

    Only SUCCESS is sent today: failures answer with the {detail, code}
    error body. FAILED completes the envelope contract for clients.
    """
    FAILED = 0
    SUCCESS = 1


class UserCreate(BaseModel):
    """
    Schema for registering a new user.

    Unknown fields are rejected rather than silently dropped.

    Example:
        {
            "name": "Ann",
            "email": "ann@x.com",
            "age": 30
        }
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {"name": "Ann", "email": "ann@x.com", "age": 30}
        },
    )

    # Display name, also used in the welcome message
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="User's name"
    )

    # Must be unique across all users
    email: EmailStr = Field(
        ...,
        description="User's e-mail address"
    )

    age: int = Field(
        ...,
        ge=0,
        description="User's age in years"
    )


class UserResponse(BaseModel):
    """
    Schema for returning user data to clients.

    Also used as the user snapshot carried in welcome job payloads.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Unique user identifier")
    name: str = Field(..., description="User's name")
    email: str = Field(..., description="User's e-mail address")
    age: int = Field(..., description="User's age in years")


class ApiResponse(BaseModel, Generic[T]):
    """
    General API response envelope.

    Example:
        {
            "status_code": 201,
            "status": 1,
            "result": {"id": 1, "name": "Ann", "email": "ann@x.com", "age": 30},
            "message": "User created successfully"
        }
    """

    status_code: int = Field(..., description="HTTP status code of the response")
    status: ResponseStatus = Field(..., description="1 on success, 0 on failure")
    result: T | None = Field(default=None, description="Operation result")
    message: str | None = Field(default=None, description="Human-readable summary")
