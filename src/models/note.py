"""Note model - personal or room-shared text notes."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.room import Room
    from models.user import User


class Note(Base, UUIDv7Mixin, TimestampMixin):
    """
    Note model.

    room_id NULL means a personal note visible only to its creator; otherwise
    the note belongs to the room and is visible to every member.
    """

    __tablename__ = "notes"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    room_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    user: Mapped["User"] = relationship()
    room: Mapped["Room | None"] = relationship(back_populates="notes")
