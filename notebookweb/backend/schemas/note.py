"""
Note Schemas.

Pydantic schemas for note records as stored by the backend and for
note creation requests.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Note(BaseModel):
    """A user-owned note as returned by the backend."""

    id: str = Field(description="Note unique identifier (backend-assigned)")
    title: str = Field(description="Note title")
    content: str = Field(description="Note content")
    created_at: datetime = Field(description="Creation timestamp (backend-assigned)")
    user_id: str | None = Field(default=None, description="Owner (backend-enforced)")

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _stringify_identifier(cls, value: Any) -> Any:
        # Tables may use bigint or uuid keys; the client treats both as opaque
        if value is None:
            return value
        return str(value)


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    title: str = Field(
        ...,
        description="Note title",
        examples=["Groceries"],
    )
    content: str = Field(
        ...,
        description="Note content",
        examples=["Milk, eggs"],
    )

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value
