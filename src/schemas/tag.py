"""Pydantic schemas for tag endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.validators import TAG_COLOR_MAX_LENGTH, validate_tag_name


class TagCreate(BaseModel):
    """Schema for creating a tag."""

    name: str
    color: str | None = Field(default=None, max_length=TAG_COLOR_MAX_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        """Normalize and validate the tag name."""
        if not isinstance(v, str):
            raise ValueError("Tag name must be a string")
        return validate_tag_name(v)


class TagResponse(BaseModel):
    """Schema for tag responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: str | None
    created_at: datetime
