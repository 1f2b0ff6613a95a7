"""Pydantic schemas for rooms, memberships and room bookmarks."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator

from models.room_member import RoomRole
from schemas.user import UserSummary
from schemas.validators import validate_not_blank, validate_note_length

MAX_ROOM_NAME_LENGTH = 200


class RoomCreate(BaseModel):
    """Schema for creating a room."""

    name: str = Field(max_length=MAX_ROOM_NAME_LENGTH)
    description: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Room name is required."""
        return validate_not_blank(v, "Room name").strip()


class RoomUpdate(BaseModel):
    """Schema for partially updating a room."""

    name: str | None = Field(default=None, max_length=MAX_ROOM_NAME_LENGTH)
    description: str | None = None

    @model_validator(mode="after")
    def check_name(self) -> "RoomUpdate":
        """Name may be omitted but not cleared."""
        if "name" in self.model_fields_set:
            if self.name is None:
                raise ValueError("Room name cannot be empty")
            self.name = validate_not_blank(self.name, "Room name").strip()
        return self


class RoomResponse(BaseModel):
    """Schema for room responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    owner_id: UUID
    created_at: datetime
    updated_at: datetime


class RoomListItem(RoomResponse):
    """A room the caller belongs to, with their role and the member count."""

    role: RoomRole
    member_count: int


class RoomDetailResponse(RoomResponse):
    """Room detail including the caller's role."""

    current_user_role: RoomRole


class RoomMemberInvite(BaseModel):
    """Invite a user by id or by email. Role defaults to MEMBER."""

    user_id: UUID | None = None
    email: str | None = None
    role: RoomRole = RoomRole.MEMBER

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        """Emails are matched case-insensitively."""
        if v is None:
            return None
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @model_validator(mode="after")
    def check_target(self) -> "RoomMemberInvite":
        """Exactly one of user_id or email identifies the invitee."""
        if (self.user_id is None) == (self.email is None):
            raise ValueError("Provide either user_id or email")
        return self


class RoomMemberResponse(BaseModel):
    """Schema for room membership responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    room_id: UUID
    user_id: UUID
    role: RoomRole
    joined_at: datetime
    user: UserSummary


class RoomBookmarkCreate(BaseModel):
    """Schema for sharing a link in a room."""

    url: HttpUrl
    note: str | None = None

    @field_validator("note")
    @classmethod
    def check_note_length(cls, v: str | None) -> str | None:
        """Validate note length."""
        return validate_note_length(v)


class RoomBookmarkResponse(BaseModel):
    """Schema for room bookmark responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    room_id: UUID
    added_by_id: UUID
    url: str
    title: str | None
    note: str | None
    created_at: datetime
