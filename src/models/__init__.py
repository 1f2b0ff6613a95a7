"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.tag import Tag, bookmark_tags  # Must be before bookmark due to import
from models.bookmark import Bookmark, BookmarkStatus
from models.reminder import Reminder, ReminderStatus
from models.note import Note
from models.room import Room
from models.room_bookmark import RoomBookmark
from models.room_member import RoomMember, RoomRole
from models.todo import Todo
from models.user import User

__all__ = [
    "Base",
    "Bookmark",
    "BookmarkStatus",
    "Note",
    "Reminder",
    "ReminderStatus",
    "Room",
    "RoomBookmark",
    "RoomMember",
    "RoomRole",
    "Tag",
    "TimestampMixin",
    "Todo",
    "UUIDv7Mixin",
    "User",
    "bookmark_tags",
]
