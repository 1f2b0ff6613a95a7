"""
Service layer for rooms, their memberships and room bookmarks.

Every operation resolves the caller's membership first. Non-members get
RoomNotFoundError whether or not the room exists; members whose role is too low
get PermissionDeniedError.
"""
import logging
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from core.config import get_settings
from models.room import Room
from models.room_bookmark import RoomBookmark
from models.room_member import ROLE_LEVELS, RoomMember, RoomRole
from models.user import User
from schemas.room import (
    RoomBookmarkCreate,
    RoomCreate,
    RoomDetailResponse,
    RoomListItem,
    RoomMemberInvite,
    RoomResponse,
    RoomUpdate,
)
from services import url_scraper
from services.authorization import require_membership, require_role
from services.exceptions import AlreadyMemberError, OwnerCannotLeaveError, UserNotFoundError

logger = logging.getLogger(__name__)


async def create_room(db: AsyncSession, user_id: UUID, data: RoomCreate) -> Room:
    """
    Create a room with the creator as its OWNER.

    The room and the membership are written in one savepoint, so neither can
    exist without the other.
    """
    room = Room(name=data.name, description=data.description, owner_id=user_id)
    async with db.begin_nested():
        db.add(room)
        await db.flush()
        db.add(RoomMember(room_id=room.id, user_id=user_id, role=RoomRole.OWNER.value))
        await db.flush()
    await db.refresh(room)
    logger.info("User %s created room %s", user_id, room.id)
    return room


async def list_rooms(db: AsyncSession, user_id: UUID) -> list[RoomListItem]:
    """Rooms the user belongs to, most recently joined first, with role and member count."""
    mine = aliased(RoomMember)
    member_count = (
        select(func.count(RoomMember.id))
        .where(RoomMember.room_id == Room.id)
        .correlate(Room)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Room, mine.role, member_count.label("member_count"))
        .join(mine, mine.room_id == Room.id)
        .where(mine.user_id == user_id)
        .order_by(mine.joined_at.desc(), Room.id.desc()),
    )
    return [
        RoomListItem(
            **RoomResponse.model_validate(room).model_dump(),
            role=RoomRole(role),
            member_count=member_count,
        )
        for room, role, member_count in result.all()
    ]


async def get_room(db: AsyncSession, user_id: UUID, room_id: UUID) -> RoomDetailResponse:
    """
    Room detail including the caller's role.

    Raises:
        RoomNotFoundError: If the user is not a member.
    """
    membership = await require_membership(db, room_id, user_id)
    room = await db.get(Room, room_id)
    return RoomDetailResponse(
        **RoomResponse.model_validate(room).model_dump(),
        current_user_role=membership.room_role,
    )


async def update_room(
    db: AsyncSession,
    user_id: UUID,
    room_id: UUID,
    data: RoomUpdate,
) -> Room:
    """
    Rename or re-describe a room. Requires ADMIN or OWNER.

    Raises:
        RoomNotFoundError: If the user is not a member.
        PermissionDeniedError: If the user's role is below ADMIN.
    """
    await require_role(db, room_id, user_id, RoomRole.ADMIN)
    room = await db.get(Room, room_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(room, field, value)
    room.updated_at = func.clock_timestamp()
    await db.flush()
    await db.refresh(room)
    return room


async def delete_room(db: AsyncSession, user_id: UUID, room_id: UUID) -> None:
    """
    Delete a room and (by database cascade) its members and content. OWNER only.

    Raises:
        RoomNotFoundError: If the user is not a member.
        PermissionDeniedError: If the user is not the OWNER.
    """
    await require_role(db, room_id, user_id, RoomRole.OWNER)
    room = await db.get(Room, room_id)
    await db.delete(room)
    await db.flush()
    logger.info("User %s deleted room %s", user_id, room_id)


async def list_members(db: AsyncSession, user_id: UUID, room_id: UUID) -> list[RoomMember]:
    """
    Members of a room, highest role first, then by join time.

    Raises:
        RoomNotFoundError: If the user is not a member.
    """
    await require_membership(db, room_id, user_id)
    role_rank = case(
        {role.value: level for role, level in ROLE_LEVELS.items()},
        value=RoomMember.role,
        else_=0,
    )
    result = await db.execute(
        select(RoomMember)
        .options(selectinload(RoomMember.user))
        .where(RoomMember.room_id == room_id)
        .order_by(role_rank.desc(), RoomMember.joined_at.asc()),
    )
    return list(result.scalars().all())


async def _resolve_invitee(db: AsyncSession, data: RoomMemberInvite) -> User:
    if data.user_id is not None:
        user = await db.get(User, data.user_id)
    else:
        result = await db.execute(select(User).where(func.lower(User.email) == data.email))
        user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFoundError()
    return user


async def invite_member(
    db: AsyncSession,
    user_id: UUID,
    room_id: UUID,
    data: RoomMemberInvite,
) -> RoomMember:
    """
    Add a user to a room by id or email. Requires ADMIN or OWNER.

    The invitee gets the requested role (MEMBER by default).

    Raises:
        RoomNotFoundError: If the inviter is not a member.
        PermissionDeniedError: If the inviter's role is below ADMIN.
        UserNotFoundError: If no user matches the id or email.
        AlreadyMemberError: If the user already belongs to the room.
    """
    await require_role(db, room_id, user_id, RoomRole.ADMIN)
    invitee = await _resolve_invitee(db, data)

    existing = await db.execute(
        select(RoomMember.id).where(
            RoomMember.room_id == room_id,
            RoomMember.user_id == invitee.id,
        ),
    )
    if existing.scalar_one_or_none() is not None:
        raise AlreadyMemberError()

    member = RoomMember(room_id=room_id, user_id=invitee.id, role=data.role.value)
    try:
        async with db.begin_nested():
            db.add(member)
            await db.flush()
    except IntegrityError as e:
        # Concurrent invite of the same user
        if "uq_room_members_room_id_user_id" in str(e):
            raise AlreadyMemberError() from e
        raise
    await db.refresh(member)
    await db.refresh(member, attribute_names=["user"])
    logger.info("User %s added %s to room %s as %s", user_id, invitee.id, room_id, data.role)
    return member


async def leave_room(db: AsyncSession, user_id: UUID, room_id: UUID) -> None:
    """
    Remove the caller's own membership.

    An OWNER may only leave as the last remaining member.

    Raises:
        RoomNotFoundError: If the user is not a member.
        OwnerCannotLeaveError: If the user is an OWNER and other members remain.
    """
    membership = await require_membership(db, room_id, user_id)
    if membership.room_role == RoomRole.OWNER:
        result = await db.execute(
            select(func.count(RoomMember.id)).where(RoomMember.room_id == room_id),
        )
        member_count = result.scalar() or 0
        if member_count > 1:
            raise OwnerCannotLeaveError(member_count)
    await db.delete(membership)
    await db.flush()


async def list_room_bookmarks(
    db: AsyncSession,
    user_id: UUID,
    room_id: UUID,
) -> list[RoomBookmark]:
    """
    Links shared in a room, newest first.

    Raises:
        RoomNotFoundError: If the user is not a member.
    """
    await require_membership(db, room_id, user_id)
    result = await db.execute(
        select(RoomBookmark)
        .where(RoomBookmark.room_id == room_id)
        .order_by(RoomBookmark.created_at.desc(), RoomBookmark.id.desc()),
    )
    return list(result.scalars().all())


async def add_room_bookmark(
    db: AsyncSession,
    user_id: UUID,
    room_id: UUID,
    data: RoomBookmarkCreate,
) -> RoomBookmark:
    """
    Share a link in a room. The title comes from the page when it can be fetched.

    Raises:
        RoomNotFoundError: If the user is not a member.
    """
    await require_membership(db, room_id, user_id)
    url_str = str(data.url)
    metadata = await url_scraper.fetch_metadata(url_str, get_settings().metadata_fetch_timeout)
    bookmark = RoomBookmark(
        room_id=room_id,
        added_by_id=user_id,
        url=url_str,
        title=metadata.title,
        note=data.note,
    )
    db.add(bookmark)
    await db.flush()
    await db.refresh(bookmark)
    return bookmark
