"""Service layer for note CRUD operations."""
from uuid import UUID

from sqlalchemy.orm import InstrumentedAttribute

from models.note import Note
from schemas.note import NoteCreate
from services.exceptions import NoteNotFoundError
from services.room_content_service import RoomContentService


class NoteService(RoomContentService[Note]):
    """Notes: most recently edited first."""

    model = Note
    not_found_error = NoteNotFoundError

    def _list_ordering(self) -> list[InstrumentedAttribute]:
        return [Note.updated_at.desc(), Note.id.desc()]

    def _build(self, user_id: UUID, data: NoteCreate) -> Note:
        return Note(
            user_id=user_id,
            room_id=data.room_id,
            title=data.title,
            content=data.content,
        )
