"""Todo model - personal or room-shared tasks."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.room import Room
    from models.user import User


class Todo(Base, UUIDv7Mixin, TimestampMixin):
    """Todo model. Ownership and visibility follow the same rules as Note."""

    __tablename__ = "todos"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    room_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    task: Mapped[str] = mapped_column(Text, nullable=False)
    is_done: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"),
    )

    user: Mapped["User"] = relationship()
    room: Mapped["Room | None"] = relationship(back_populates="todos")
