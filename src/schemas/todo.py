"""Pydantic schemas for todo endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from schemas.user import UserSummary
from schemas.validators import validate_content_length, validate_not_blank


class TodoCreate(BaseModel):
    """Schema for creating a todo. room_id attaches it to a room."""

    task: str
    room_id: UUID | None = None

    @field_validator("task")
    @classmethod
    def check_task(cls, v: str) -> str:
        """Task text is required and bounded."""
        validate_not_blank(v, "Task")
        return validate_content_length(v)


class TodoUpdate(BaseModel):
    """Schema for partially updating a todo."""

    task: str | None = None
    is_done: bool | None = None

    @model_validator(mode="after")
    def check_not_null(self) -> "TodoUpdate":
        """Fields may be omitted but not cleared."""
        if "task" in self.model_fields_set:
            if self.task is None:
                raise ValueError("Task cannot be empty")
            validate_not_blank(self.task, "Task")
            validate_content_length(self.task)
        if "is_done" in self.model_fields_set and self.is_done is None:
            raise ValueError("is_done cannot be null")
        return self


class TodoResponse(BaseModel):
    """Schema for todo responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task: str
    is_done: bool
    user_id: UUID
    room_id: UUID | None
    user: UserSummary | None = None
    created_at: datetime
    updated_at: datetime
