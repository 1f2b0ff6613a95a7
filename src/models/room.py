"""Room model - a shared workspace with its own notes, todos and bookmarks."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.note import Note
    from models.room_bookmark import RoomBookmark
    from models.room_member import RoomMember
    from models.todo import Todo


class Room(Base, UUIDv7Mixin, TimestampMixin):
    """
    Room model.

    A room is always created together with its creator's OWNER membership.
    Deleting a room cascades (at the database level) to its memberships and all
    room-scoped content.
    """

    __tablename__ = "rooms"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )

    members: Mapped[list["RoomMember"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    notes: Mapped[list["Note"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    todos: Mapped[list["Todo"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bookmarks: Mapped[list["RoomBookmark"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
