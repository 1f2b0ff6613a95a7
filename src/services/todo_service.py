"""Service layer for todo CRUD operations."""
from uuid import UUID

from sqlalchemy.orm import InstrumentedAttribute

from models.todo import Todo
from schemas.todo import TodoCreate
from services.exceptions import TodoNotFoundError
from services.room_content_service import RoomContentService


class TodoService(RoomContentService[Todo]):
    """Todos: newest first."""

    model = Todo
    not_found_error = TodoNotFoundError

    def _list_ordering(self) -> list[InstrumentedAttribute]:
        return [Todo.created_at.desc(), Todo.id.desc()]

    def _build(self, user_id: UUID, data: TodoCreate) -> Todo:
        return Todo(user_id=user_id, room_id=data.room_id, task=data.task)
