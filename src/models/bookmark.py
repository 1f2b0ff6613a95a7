"""Bookmark model for storing user bookmarks."""
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.tag import bookmark_tags

if TYPE_CHECKING:
    from models.reminder import Reminder
    from models.tag import Tag
    from models.user import User


class BookmarkStatus(StrEnum):
    """Reading status of a bookmark."""

    PENDING = "PENDING"
    DONE = "DONE"
    IGNORED = "IGNORED"


class Bookmark(Base, UUIDv7Mixin, TimestampMixin):
    """Bookmark model - stores URLs with fetched metadata, flags, tags and a reminder."""

    __tablename__ = "bookmarks"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    favicon_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_favorite: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"),
    )
    is_pinned: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"),
    )
    is_read_later: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"),
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=BookmarkStatus.PENDING.value,
        server_default=BookmarkStatus.PENDING.value,
    )
    # Manual ordering, rewritten in bulk by the reorder endpoint
    position: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), index=True,
    )

    user: Mapped["User"] = relationship(back_populates="bookmarks")
    tag_objects: Mapped[list["Tag"]] = relationship(
        secondary=bookmark_tags,
        back_populates="bookmarks",
    )
    reminder: Mapped["Reminder | None"] = relationship(
        back_populates="bookmark",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
