"""Room, membership and room bookmark endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from api.helpers import SERVICE_ERRORS, to_http_exception
from models.user import User
from schemas.room import (
    RoomBookmarkCreate,
    RoomBookmarkResponse,
    RoomCreate,
    RoomDetailResponse,
    RoomListItem,
    RoomMemberInvite,
    RoomMemberResponse,
    RoomResponse,
    RoomUpdate,
)
from services import room_service

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("/", response_model=list[RoomListItem])
async def list_rooms(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[RoomListItem]:
    """Rooms the caller belongs to, with their role and the member count."""
    return await room_service.list_rooms(db, current_user.id)


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    data: RoomCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RoomResponse:
    """Create a room. The caller becomes its OWNER."""
    room = await room_service.create_room(db, current_user.id, data)
    return RoomResponse.model_validate(room)


@router.get("/{room_id}", response_model=RoomDetailResponse)
async def get_room(
    room_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RoomDetailResponse:
    """Room detail with the caller's role. Non-members get 404."""
    try:
        return await room_service.get_room(db, current_user.id, room_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e


@router.patch("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: UUID,
    data: RoomUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RoomResponse:
    """Update name or description. Requires OWNER or ADMIN."""
    try:
        room = await room_service.update_room(db, current_user.id, room_id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return RoomResponse.model_validate(room)


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a room with all its members and content. Requires OWNER."""
    try:
        await room_service.delete_room(db, current_user.id, room_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e


@router.get("/{room_id}/members", response_model=list[RoomMemberResponse])
async def list_members(
    room_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[RoomMemberResponse]:
    """Members of the room, OWNER first."""
    try:
        members = await room_service.list_members(db, current_user.id, room_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return [RoomMemberResponse.model_validate(m) for m in members]


@router.post(
    "/{room_id}/members",
    response_model=RoomMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite_member(
    room_id: UUID,
    data: RoomMemberInvite,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RoomMemberResponse:
    """
    Add a user to the room by user_id or email. Requires OWNER or ADMIN.

    Returns 404 if no such user exists and 409 if they are already a member.
    """
    try:
        member = await room_service.invite_member(db, current_user.id, room_id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return RoomMemberResponse.model_validate(member)


@router.delete("/{room_id}/members", status_code=status.HTTP_204_NO_CONTENT)
async def leave_room(
    room_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """
    Leave the room.

    The OWNER can only leave when no other members remain (409 otherwise).
    """
    try:
        await room_service.leave_room(db, current_user.id, room_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e


@router.get("/{room_id}/bookmarks", response_model=list[RoomBookmarkResponse])
async def list_room_bookmarks(
    room_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[RoomBookmarkResponse]:
    """Links shared in the room, newest first."""
    try:
        bookmarks = await room_service.list_room_bookmarks(db, current_user.id, room_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return [RoomBookmarkResponse.model_validate(b) for b in bookmarks]


@router.post(
    "/{room_id}/bookmarks",
    response_model=RoomBookmarkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_room_bookmark(
    room_id: UUID,
    data: RoomBookmarkCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> RoomBookmarkResponse:
    """Share a link in the room. Any member may add one."""
    try:
        bookmark = await room_service.add_room_bookmark(db, current_user.id, room_id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return RoomBookmarkResponse.model_validate(bookmark)
