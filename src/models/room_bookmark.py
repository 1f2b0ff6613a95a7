"""RoomBookmark model - a link shared inside a room."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.room import Room
    from models.user import User


class RoomBookmark(Base, UUIDv7Mixin, TimestampMixin):
    """Room-scoped bookmark: url, title and note, plus who added it."""

    __tablename__ = "room_bookmarks"

    room_id: Mapped[UUID] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    added_by_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    room: Mapped["Room"] = relationship(back_populates="bookmarks")
    added_by: Mapped["User"] = relationship()
