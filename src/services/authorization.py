"""
Authorization guard for owned and room-scoped resources.

Two predicate families cover every check in the application:

- ownership: the resource's user_id is the principal's id (bookmarks, tags,
  personal notes and todos);
- room role: the principal's RoomMember row for the room, compared against a
  minimum RoomRole.

Rejections distinguish visibility from rights. A principal who may not even see
the target (someone else's personal resource, a room they are not a member of)
gets a NotFoundError so the target's existence is not confirmed. A principal who
can see the target but lacks rights gets PermissionDeniedError.
"""
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.room_member import RoomMember, RoomRole
from services.exceptions import NotFoundError, PermissionDeniedError, RoomNotFoundError


class OwnedResource(Protocol):
    """Anything carrying the id of the user who owns (or created) it."""

    user_id: UUID


class RoomScopedContent(OwnedResource, Protocol):
    """Notes and todos: created by a user, optionally attached to a room."""

    room_id: UUID | None


def owns_resource(user_id: UUID, resource: OwnedResource) -> bool:
    """Return True if the resource belongs to (or was created by) the user."""
    return resource.user_id == user_id


async def get_membership(
    db: AsyncSession,
    room_id: UUID,
    user_id: UUID,
) -> RoomMember | None:
    """Return the user's membership in the room, or None."""
    result = await db.execute(
        select(RoomMember).where(
            RoomMember.room_id == room_id,
            RoomMember.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


async def require_membership(
    db: AsyncSession,
    room_id: UUID,
    user_id: UUID,
) -> RoomMember:
    """
    Return the user's membership in the room.

    Raises:
        RoomNotFoundError: If the user is not a member (or the room does not exist).
    """
    membership = await get_membership(db, room_id, user_id)
    if membership is None:
        raise RoomNotFoundError()
    return membership


async def require_role(
    db: AsyncSession,
    room_id: UUID,
    user_id: UUID,
    minimum: RoomRole,
) -> RoomMember:
    """
    Return the user's membership if their role is at least `minimum`.

    Raises:
        RoomNotFoundError: If the user is not a member.
        PermissionDeniedError: If the user's role ranks below `minimum`.
    """
    membership = await require_membership(db, room_id, user_id)
    if not membership.room_role.at_least(minimum):
        raise PermissionDeniedError(
            f"This action requires the {minimum.value} role or higher",
        )
    return membership


async def check_can_read(
    db: AsyncSession,
    user_id: UUID,
    item: RoomScopedContent,
    not_found: type[NotFoundError],
) -> None:
    """Creator, or any member of the item's room, may read it."""
    if owns_resource(user_id, item):
        return
    if item.room_id is not None and await get_membership(db, item.room_id, user_id):
        return
    raise not_found()


async def check_can_update(
    db: AsyncSession,
    user_id: UUID,
    item: RoomScopedContent,
    not_found: type[NotFoundError],
) -> None:
    """Creator, or any member of the item's room, may update it."""
    await check_can_read(db, user_id, item, not_found)


async def check_can_delete(
    db: AsyncSession,
    user_id: UUID,
    item: RoomScopedContent,
    not_found: type[NotFoundError],
) -> None:
    """
    Creator, or an OWNER/ADMIN of the item's room, may delete it.

    Other room members can see the item, so they get PermissionDeniedError
    rather than a not-found.
    """
    if owns_resource(user_id, item):
        return
    membership = None
    if item.room_id is not None:
        membership = await get_membership(db, item.room_id, user_id)
    if membership is None:
        raise not_found()
    if not membership.room_role.at_least(RoomRole.ADMIN):
        raise PermissionDeniedError(
            "Only the creator or a room owner/admin can delete this item",
        )
