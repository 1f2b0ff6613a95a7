"""Pydantic schemas for reminder endpoints and the reminder sweep."""
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from schemas.validators import ensure_utc, loaded_attribute


class ReminderCreate(BaseModel):
    """Create a reminder, or reschedule the bookmark's existing one."""

    bookmark_id: UUID
    scheduled_at: datetime
    message: str | None = None

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v: datetime) -> datetime:
        """Store reminder times as UTC."""
        return ensure_utc(v)


class ReminderBookmark(BaseModel):
    """The bookmark a reminder points at."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    url: str
    domain: str
    title: str | None
    favicon_url: str | None


class ReminderResponse(BaseModel):
    """Schema for reminder responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    bookmark_id: UUID
    scheduled_at: datetime
    message: str | None
    status: str
    created_at: datetime
    updated_at: datetime


class ReminderWithBookmarkResponse(ReminderResponse):
    """Reminder list item, joined with its bookmark."""

    bookmark: ReminderBookmark | None = None

    @model_validator(mode="before")
    @classmethod
    def extract_bookmark(cls, data: Any) -> Any:
        """Only read the bookmark relationship when it was eagerly loaded."""
        if hasattr(data, "__dict__") and hasattr(data, "__table__"):
            data_dict = {
                key: getattr(data, key)
                for key in [
                    "id", "bookmark_id", "scheduled_at", "message", "status",
                    "created_at", "updated_at",
                ]
            }
            data_dict["bookmark"] = loaded_attribute(data, "bookmark")
            return data_dict
        return data


class ReminderOutcome(BaseModel):
    """Result of processing one due reminder."""

    id: UUID
    status: Literal["sent", "failed"]
    email: str | None = None
    error: str | None = None


class ReminderSweepResponse(BaseModel):
    """Summary of one sweep run."""

    processed: int
    results: list[ReminderOutcome]
    cleaned: int
    timestamp: datetime
