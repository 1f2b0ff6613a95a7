"""Pydantic schemas for bookmark endpoints."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator

from models.bookmark import BookmarkStatus
from schemas.tag import TagResponse
from schemas.validators import (
    ensure_utc,
    loaded_attribute,
    validate_note_length,
    validate_title_length,
)


class BookmarkCreate(BaseModel):
    """Schema for creating a new bookmark. Title and favicon come from the page."""

    # HttpUrl normalizes root domains with trailing slash (example.com -> example.com/)
    url: HttpUrl
    note: str | None = None
    reminder_at: datetime | None = Field(
        default=None,
        description="Optionally schedule an email reminder for this bookmark. "
                    "Accepts ISO 8601; naive values are treated as UTC.",
    )
    tag_ids: list[UUID] = []

    @field_validator("note")
    @classmethod
    def check_note_length(cls, v: str | None) -> str | None:
        """Validate note length."""
        return validate_note_length(v)

    @field_validator("reminder_at")
    @classmethod
    def normalize_reminder_at(cls, v: datetime | None) -> datetime | None:
        """Store reminder times as UTC."""
        return ensure_utc(v)


class BookmarkUpdate(BaseModel):
    """
    Schema for partially updating a bookmark.

    Only fields present in the request body are applied (callers use
    model_dump(exclude_unset=True)); an omitted field is never reset.
    """

    title: str | None = None
    note: str | None = None
    is_favorite: bool | None = None
    is_pinned: bool | None = None
    is_read_later: bool | None = None
    status: BookmarkStatus | None = None
    tag_ids: list[UUID] | None = Field(
        default=None,
        description="Replaces the full tag set when present.",
    )

    @field_validator("title")
    @classmethod
    def check_title_length(cls, v: str | None) -> str | None:
        """Validate title length."""
        return validate_title_length(v)

    @field_validator("note")
    @classmethod
    def check_note_length(cls, v: str | None) -> str | None:
        """Validate note length."""
        return validate_note_length(v)

    @model_validator(mode="after")
    def check_required_fields_not_null(self) -> "BookmarkUpdate":
        """Flags, status and tag_ids may be omitted but not set to null."""
        for field in ("is_favorite", "is_pinned", "is_read_later", "status", "tag_ids"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class BookmarkReorderRequest(BaseModel):
    """Ordered list of bookmark ids; each bookmark's position becomes its index."""

    bookmark_ids: list[UUID]

    @field_validator("bookmark_ids")
    @classmethod
    def check_unique(cls, v: list[UUID]) -> list[UUID]:
        """Each bookmark may appear only once."""
        if len(set(v)) != len(v):
            raise ValueError("bookmark_ids must not contain duplicates")
        return v


class ReminderSummary(BaseModel):
    """Reminder embedded in bookmark responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scheduled_at: datetime
    message: str | None
    status: str


class BookmarkResponse(BaseModel):
    """
    Schema for bookmark responses.

    Note: Uses model_validator to read the tag_objects and reminder
    relationships only when they were eagerly loaded.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    url: str
    domain: str
    title: str | None
    favicon_url: str | None
    note: str | None
    is_favorite: bool
    is_pinned: bool
    is_read_later: bool
    status: str
    position: int
    tags: list[TagResponse] = []
    reminder: ReminderSummary | None = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def extract_relationships(cls, data: Any) -> Any:
        """Map loaded ORM relationships onto the response fields."""
        if hasattr(data, "__dict__") and hasattr(data, "__table__"):
            data_dict = {
                key: getattr(data, key)
                for key in [
                    "id", "url", "domain", "title", "favicon_url", "note",
                    "is_favorite", "is_pinned", "is_read_later", "status",
                    "position", "created_at", "updated_at",
                ]
            }
            data_dict["tags"] = loaded_attribute(data, "tag_objects") or []
            data_dict["reminder"] = loaded_attribute(data, "reminder")
            return data_dict
        return data


class BookmarkListResponse(BaseModel):
    """Schema for paginated bookmark list responses."""

    items: list[BookmarkResponse]
    total: int  # Total count of bookmarks matching the query (before pagination)
    offset: int
    limit: int
    has_more: bool
