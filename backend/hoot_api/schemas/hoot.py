"""
Hoot API Backend: Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract for hoots and comments.
How:   FastAPI validates request bodies against the *Create/*Update models
       before a route runs, and serializes the *Response models on the way
       out. Services only ever receive validated request models.

Unknown fields in request bodies (including `author`) are ignored, so a
client can never set or change authorship through a body.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from hoot_api.models.hoot import Category


def _require_text(value: Optional[str], field: str) -> str:
    # Whitespace-only is rejected; accepted text is stored exactly as sent
    if value is None:
        raise ValueError(f"{field} may not be null")
    if not value.strip():
        raise ValueError(f"{field} may not be blank")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class HootCreate(BaseModel):
    """Body of POST /hoots. All three fields are required."""

    title: str = Field(description="Hoot title")
    text: str = Field(description="Hoot body text")
    category: Category = Field(description="One of: " + ", ".join(c.value for c in Category))

    @field_validator("title", "text")
    @classmethod
    def validate_text_fields(cls, v: str, info) -> str:
        return _require_text(v, info.field_name)


class HootUpdate(BaseModel):
    """
    Body of PUT /hoots/{hoot_id}.

    Partial update: only the fields present in the body are applied.
    A field that is present must still be valid (non-blank, known category);
    explicit nulls are rejected.
    """

    title: Optional[str] = Field(default=None)
    text: Optional[str] = Field(default=None)
    category: Optional[Category] = Field(default=None)

    @field_validator("title", "text")
    @classmethod
    def validate_text_fields(cls, v: Optional[str], info) -> str:
        return _require_text(v, info.field_name)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[Category]) -> Category:
        if v is None:
            raise ValueError("category may not be null")
        return v


class CommentCreate(BaseModel):
    """Body of POST /hoots/{hoot_id}/comments."""

    text: str = Field(description="Comment text")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _require_text(v, "text")


class CommentUpdate(CommentCreate):
    """Body of PUT /hoots/{hoot_id}/comments/{comment_id}."""


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorResponse(BaseModel):
    """An author reference resolved to the identity's display attributes."""

    id: str = Field(description="Identity id")
    username: Optional[str] = Field(default=None, description="Display name")


class CommentResponse(BaseModel):
    id: uuid.UUID = Field(description="Comment id, unique within its hoot")
    text: str
    author: AuthorResponse
    created_at: datetime
    updated_at: datetime


class HootResponse(BaseModel):
    """
    What:  Full representation of a hoot with its comments in order.
    Who:   Returned by every hoot endpoint (list returns an array of these).
    """

    id: uuid.UUID = Field(description="Hoot id (UUID)")
    title: str
    text: str
    category: Category
    author: AuthorResponse
    comments: List[CommentResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    """Acknowledgement returned by comment update/delete."""

    message: str = Field(default="Ok")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "forbidden",
            "message": "You're not allowed to do that!",
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
