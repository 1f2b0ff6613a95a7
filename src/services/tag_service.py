"""Service layer for tag operations."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.tag import Tag
from schemas.tag import TagCreate
from services.exceptions import TagAlreadyExistsError, TagNotFoundError, ValidationFailedError


async def list_tags(db: AsyncSession, user_id: UUID) -> list[Tag]:
    """Return the user's tags ordered by name."""
    result = await db.execute(
        select(Tag).where(Tag.user_id == user_id).order_by(Tag.name.asc()),
    )
    return list(result.scalars())


async def get_tag(db: AsyncSession, user_id: UUID, tag_id: UUID) -> Tag | None:
    """Return the tag if it exists and belongs to the user."""
    result = await db.execute(
        select(Tag).where(Tag.id == tag_id, Tag.user_id == user_id),
    )
    return result.scalar_one_or_none()


async def create_tag(db: AsyncSession, user_id: UUID, data: TagCreate) -> Tag:
    """
    Create a tag for the user.

    Raises:
        TagAlreadyExistsError: If the user already has a tag with this name.
    """
    existing = await db.execute(
        select(Tag.id).where(Tag.user_id == user_id, Tag.name == data.name),
    )
    if existing.scalar_one_or_none() is not None:
        raise TagAlreadyExistsError(data.name)

    tag = Tag(user_id=user_id, name=data.name, color=data.color)
    try:
        # Savepoint so a concurrent insert only rolls back this statement
        async with db.begin_nested():
            db.add(tag)
            await db.flush()
    except IntegrityError as e:
        if "uq_tags_user_id_name" in str(e):
            raise TagAlreadyExistsError(data.name) from e
        raise
    await db.refresh(tag)
    return tag


async def delete_tag(db: AsyncSession, user_id: UUID, tag_id: UUID) -> None:
    """
    Delete one of the user's tags. Junction rows cascade.

    Raises:
        TagNotFoundError: If the tag does not exist or belongs to someone else.
    """
    tag = await get_tag(db, user_id, tag_id)
    if tag is None:
        raise TagNotFoundError()
    await db.delete(tag)
    await db.flush()


async def resolve_tags(db: AsyncSession, user_id: UUID, tag_ids: list[UUID]) -> list[Tag]:
    """
    Load the user's tags for the given ids, preserving request order.

    Raises:
        ValidationFailedError: If any id is unknown or belongs to another user.
    """
    if not tag_ids:
        return []
    unique_ids = list(dict.fromkeys(tag_ids))
    result = await db.execute(
        select(Tag).where(Tag.user_id == user_id, Tag.id.in_(unique_ids)),
    )
    found = {tag.id: tag for tag in result.scalars()}
    missing = [str(tag_id) for tag_id in unique_ids if tag_id not in found]
    if missing:
        raise ValidationFailedError(f"Unknown tag ids: {', '.join(missing)}")
    return [found[tag_id] for tag_id in unique_ids]
