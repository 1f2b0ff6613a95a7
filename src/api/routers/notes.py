"""Note CRUD endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from api.helpers import SERVICE_ERRORS, to_http_exception
from models.user import User
from schemas.note import NoteCreate, NoteResponse, NoteUpdate
from services.note_service import NoteService

router = APIRouter(prefix="/notes", tags=["notes"])

note_service = NoteService()


@router.get("/", response_model=list[NoteResponse])
async def list_notes(
    room_id: UUID | None = Query(default=None, description="List a room's notes instead of personal ones"),  # noqa: E501
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[NoteResponse]:
    """
    List personal notes, or the notes of a room the caller belongs to.

    Most recently edited first. Returns 404 for a room the caller is not a member of.
    """
    try:
        notes = await note_service.list_items(db, current_user.id, room_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return [NoteResponse.model_validate(note) for note in notes]


@router.post("/", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    data: NoteCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    """Create a personal note, or a room note when room_id is given."""
    try:
        note = await note_service.create(db, current_user.id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return NoteResponse.model_validate(note)


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    """Get a single note visible to the caller."""
    try:
        note = await note_service.get(db, current_user.id, note_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return NoteResponse.model_validate(note)


@router.patch("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: UUID,
    data: NoteUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> NoteResponse:
    """Update a note. The creator or any member of the note's room may edit it."""
    try:
        note = await note_service.update(db, current_user.id, note_id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return NoteResponse.model_validate(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """
    Delete a note.

    Allowed for the creator, or a room OWNER/ADMIN for room notes. Other room
    members get 403.
    """
    try:
        await note_service.delete(db, current_user.id, note_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
