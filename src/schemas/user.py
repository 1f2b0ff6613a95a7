"""Pydantic schemas for user payloads."""
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserSummary(BaseModel):
    """Public part of a user embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None = None


class UserResponse(UserSummary):
    """Response model for the current user."""
