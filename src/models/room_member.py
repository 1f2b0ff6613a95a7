"""RoomMember model and the room role hierarchy."""
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, UUIDv7Mixin

if TYPE_CHECKING:
    from models.room import Room
    from models.user import User


class RoomRole(StrEnum):
    """
    Role a member holds inside a room.

    Roles are ordered VIEWER < MEMBER < ADMIN < OWNER; permission checks compare
    with at_least() instead of listing the allowed roles.
    """

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"

    @property
    def level(self) -> int:
        """Numeric rank of the role (higher grants more)."""
        return ROLE_LEVELS[self]

    def at_least(self, required: "RoomRole") -> bool:
        """Return True if this role grants everything `required` grants."""
        return self.level >= required.level


ROLE_LEVELS: dict[RoomRole, int] = {
    RoomRole.VIEWER: 10,
    RoomRole.MEMBER: 20,
    RoomRole.ADMIN: 30,
    RoomRole.OWNER: 40,
}


class RoomMember(Base, UUIDv7Mixin):
    """Membership of one user in one room, carrying the user's role."""

    __tablename__ = "room_members"
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_room_members_room_id_user_id"),
    )

    room_id: Mapped[UUID] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(20), default=RoomRole.MEMBER.value)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
    )

    room: Mapped["Room"] = relationship(back_populates="members")
    user: Mapped["User"] = relationship(back_populates="memberships")

    @property
    def room_role(self) -> RoomRole:
        """Role as a RoomRole (the column stores the plain string)."""
        return RoomRole(self.role)
