"""Pydantic schemas for note endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from schemas.user import UserSummary
from schemas.validators import validate_content_length, validate_not_blank, validate_title_length


class NoteCreate(BaseModel):
    """Schema for creating a note. room_id attaches it to a room."""

    title: str | None = None
    content: str
    room_id: UUID | None = None

    @field_validator("title")
    @classmethod
    def check_title_length(cls, v: str | None) -> str | None:
        """Validate title length."""
        return validate_title_length(v)

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        """Content is required and bounded."""
        validate_not_blank(v, "Content")
        return validate_content_length(v)


class NoteUpdate(BaseModel):
    """Schema for partially updating a note."""

    title: str | None = None
    content: str | None = None

    @field_validator("title")
    @classmethod
    def check_title_length(cls, v: str | None) -> str | None:
        """Validate title length."""
        return validate_title_length(v)

    @model_validator(mode="after")
    def check_content(self) -> "NoteUpdate":
        """Content may be omitted, but when present it must not be empty."""
        if "content" in self.model_fields_set:
            if self.content is None:
                raise ValueError("Content cannot be empty")
            validate_not_blank(self.content, "Content")
            validate_content_length(self.content)
        return self


class NoteResponse(BaseModel):
    """Schema for note responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str | None
    content: str
    user_id: UUID
    room_id: UUID | None
    user: UserSummary | None = None
    created_at: datetime
    updated_at: datetime
