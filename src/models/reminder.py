"""Reminder model - one scheduled email per bookmark."""
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.bookmark import Bookmark


class ReminderStatus(StrEnum):
    """
    Lifecycle state of a reminder.

    PENDING -> COMPLETED | FAILED. PROCESSING marks a reminder claimed by a
    running sweep and only exists inside that sweep's transaction.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Reminder(Base, UUIDv7Mixin, TimestampMixin):
    """Reminder model - when to email the owner about a bookmark."""

    __tablename__ = "reminders"
    __table_args__ = (
        # The sweep selects by (status, scheduled_at)
        Index("ix_reminders_status_scheduled_at", "status", "scheduled_at"),
    )

    bookmark_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookmarks.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ReminderStatus.PENDING.value,
        server_default=ReminderStatus.PENDING.value,
    )

    bookmark: Mapped["Bookmark"] = relationship(back_populates="reminder")
