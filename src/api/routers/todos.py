"""Todo CRUD endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from api.helpers import SERVICE_ERRORS, to_http_exception
from models.user import User
from schemas.todo import TodoCreate, TodoResponse, TodoUpdate
from services.todo_service import TodoService

router = APIRouter(prefix="/todos", tags=["todos"])

todo_service = TodoService()


@router.get("/", response_model=list[TodoResponse])
async def list_todos(
    room_id: UUID | None = Query(default=None, description="List a room's todos instead of personal ones"),  # noqa: E501
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[TodoResponse]:
    """
    List personal todos, or the todos of a room the caller belongs to.

    Newest first. Returns 404 for a room the caller is not a member of.
    """
    try:
        todos = await todo_service.list_items(db, current_user.id, room_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return [TodoResponse.model_validate(todo) for todo in todos]


@router.post("/", response_model=TodoResponse, status_code=status.HTTP_201_CREATED)
async def create_todo(
    data: TodoCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> TodoResponse:
    """Create a personal todo, or a room todo when room_id is given."""
    try:
        todo = await todo_service.create(db, current_user.id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return TodoResponse.model_validate(todo)


@router.get("/{todo_id}", response_model=TodoResponse)
async def get_todo(
    todo_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> TodoResponse:
    """Get a single todo visible to the caller."""
    try:
        todo = await todo_service.get(db, current_user.id, todo_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return TodoResponse.model_validate(todo)


@router.patch("/{todo_id}", response_model=TodoResponse)
async def update_todo(
    todo_id: UUID,
    data: TodoUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> TodoResponse:
    """Update or check off a todo. The creator or any room member may change it."""
    try:
        todo = await todo_service.update(db, current_user.id, todo_id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return TodoResponse.model_validate(todo)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(
    todo_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """
    Delete a todo.

    Allowed for the creator, or a room OWNER/ADMIN for room todos. Other room
    members get 403.
    """
    try:
        await todo_service.delete(db, current_user.id, todo_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
