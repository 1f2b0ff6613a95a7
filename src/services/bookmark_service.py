"""Service layer for bookmark CRUD, search, reorder and export."""
import logging
from uuid import UUID

from sqlalchemy import ColumnElement, Select, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.config import get_settings
from models.bookmark import Bookmark
from models.reminder import Reminder
from models.tag import bookmark_tags
from schemas.bookmark import BookmarkCreate, BookmarkUpdate
from services import url_scraper
from services.exceptions import BookmarkNotFoundError
from services.tag_service import resolve_tags
from services.utils import escape_ilike

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 20


def _with_relationships(query: Select) -> Select:
    return query.options(
        selectinload(Bookmark.tag_objects),
        selectinload(Bookmark.reminder),
    )


def _default_ordering(query: Select) -> Select:
    # Manual position first; pinned and favorite break ties among equal positions
    return query.order_by(
        Bookmark.position.asc(),
        Bookmark.is_pinned.desc(),
        Bookmark.is_favorite.desc(),
        Bookmark.created_at.desc(),
        Bookmark.id.desc(),
    )


def _text_match(query_text: str) -> ColumnElement[bool]:
    pattern = f"%{escape_ilike(query_text)}%"
    return or_(
        Bookmark.title.ilike(pattern),
        Bookmark.url.ilike(pattern),
        Bookmark.note.ilike(pattern),
        Bookmark.domain.ilike(pattern),
    )


async def _refresh_with_relationships(db: AsyncSession, bookmark: Bookmark) -> None:
    await db.refresh(bookmark)
    await db.refresh(bookmark, attribute_names=["tag_objects", "reminder"])


async def create_bookmark(
    db: AsyncSession,
    user_id: UUID,
    data: BookmarkCreate,
) -> Bookmark:
    """
    Create a bookmark, filling title/favicon/domain from the page.

    The metadata fetch is best-effort: when it fails the bookmark is still
    created with no title and a favicon derived from the domain. When
    `reminder_at` is given, a PENDING reminder is created in the same flush.

    Raises:
        ValidationFailedError: If a tag id is unknown or belongs to another user.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    url_str = str(data.url)
    tags = await resolve_tags(db, user_id, data.tag_ids)

    settings = get_settings()
    metadata = await url_scraper.fetch_metadata(url_str, settings.metadata_fetch_timeout)

    bookmark = Bookmark(
        user_id=user_id,
        url=url_str,
        domain=metadata.domain,
        title=metadata.title,
        favicon_url=metadata.favicon_url,
        note=data.note,
    )
    bookmark.tag_objects = tags
    if data.reminder_at is not None:
        bookmark.reminder = Reminder(scheduled_at=data.reminder_at)
    db.add(bookmark)
    await db.flush()
    await _refresh_with_relationships(db, bookmark)
    logger.info("Created bookmark %s for user %s", bookmark.id, user_id)
    return bookmark


async def get_bookmark(
    db: AsyncSession,
    user_id: UUID,
    bookmark_id: UUID,
) -> Bookmark | None:
    """Get a bookmark by id, scoped to its owner, with tags and reminder loaded."""
    result = await db.execute(
        _with_relationships(select(Bookmark)).where(
            Bookmark.id == bookmark_id,
            Bookmark.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


async def list_bookmarks(
    db: AsyncSession,
    user_id: UUID,
    status: str | None = None,
    tag_id: UUID | None = None,
    query: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Bookmark], int]:
    """
    List a user's bookmarks with optional filters and pagination.

    Args:
        db: Database session.
        user_id: Owner of the bookmarks.
        status: Only bookmarks with this status.
        tag_id: Only bookmarks carrying this tag.
        query: Case-insensitive substring across title, url, note and domain.
        offset: Pagination offset.
        limit: Pagination limit.

    Returns:
        Tuple of (page of bookmarks, total count before pagination).
    """
    base_query = select(Bookmark).where(Bookmark.user_id == user_id)

    if status:
        base_query = base_query.where(Bookmark.status == status)
    if tag_id is not None:
        base_query = base_query.where(
            exists(
                select(bookmark_tags.c.bookmark_id).where(
                    bookmark_tags.c.bookmark_id == Bookmark.id,
                    bookmark_tags.c.tag_id == tag_id,
                ),
            ),
        )
    if query:
        base_query = base_query.where(_text_match(query))

    count_query = select(func.count()).select_from(base_query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    page_query = _default_ordering(_with_relationships(base_query)).offset(offset).limit(limit)
    result = await db.execute(page_query)
    return list(result.scalars().all()), total


async def search_bookmarks(
    db: AsyncSession,
    user_id: UUID,
    query: str | None,
) -> list[Bookmark]:
    """Quick search for the command palette: at most 20 matches, none for an empty query."""
    if not query or not query.strip():
        return []
    result = await db.execute(
        _with_relationships(select(Bookmark))
        .where(Bookmark.user_id == user_id, _text_match(query.strip()))
        .order_by(Bookmark.created_at.desc())
        .limit(SEARCH_RESULT_LIMIT),
    )
    return list(result.scalars().all())


async def update_bookmark(
    db: AsyncSession,
    user_id: UUID,
    bookmark_id: UUID,
    data: BookmarkUpdate,
) -> Bookmark:
    """
    Apply the fields present in `data`; omitted fields are left untouched.

    Raises:
        BookmarkNotFoundError: If the bookmark does not exist or belongs to someone else.
        ValidationFailedError: If a tag id is unknown or belongs to another user.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, user_id, bookmark_id)
    if bookmark is None:
        raise BookmarkNotFoundError()

    update_data = data.model_dump(exclude_unset=True)

    # Handle tag updates separately via junction table
    new_tag_ids = update_data.pop("tag_ids", None)
    if new_tag_ids is not None:
        bookmark.tag_objects = await resolve_tags(db, user_id, new_tag_ids)

    for field, value in update_data.items():
        setattr(bookmark, field, value)

    bookmark.updated_at = func.clock_timestamp()
    await db.flush()
    await _refresh_with_relationships(db, bookmark)
    return bookmark


async def delete_bookmark(db: AsyncSession, user_id: UUID, bookmark_id: UUID) -> None:
    """
    Delete a bookmark. Its reminder and tag links cascade.

    Raises:
        BookmarkNotFoundError: If the bookmark does not exist or belongs to someone else.
    """
    bookmark = await get_bookmark(db, user_id, bookmark_id)
    if bookmark is None:
        raise BookmarkNotFoundError()
    await db.delete(bookmark)
    await db.flush()


async def _set_position(
    db: AsyncSession,
    user_id: UUID,
    bookmark_id: UUID,
    position: int,
) -> None:
    await db.execute(
        update(Bookmark)
        .where(Bookmark.id == bookmark_id, Bookmark.user_id == user_id)
        .values(position=position),
    )


async def reorder_bookmarks(
    db: AsyncSession,
    user_id: UUID,
    bookmark_ids: list[UUID],
) -> None:
    """
    Set each bookmark's position to its index in `bookmark_ids`.

    All writes happen inside one savepoint: if any of them fails, every
    position in the batch keeps its previous value.

    Raises:
        BookmarkNotFoundError: If any id is not one of the user's bookmarks.
    """
    if not bookmark_ids:
        return

    result = await db.execute(
        select(func.count()).select_from(Bookmark).where(
            Bookmark.user_id == user_id,
            Bookmark.id.in_(bookmark_ids),
        ),
    )
    if result.scalar() != len(bookmark_ids):
        raise BookmarkNotFoundError("One or more bookmarks not found")

    async with db.begin_nested():
        for index, bookmark_id in enumerate(bookmark_ids):
            await _set_position(db, user_id, bookmark_id, index)


async def export_bookmarks(db: AsyncSession, user_id: UUID) -> list[Bookmark]:
    """All of the user's bookmarks, newest first, with tags and reminder."""
    result = await db.execute(
        _with_relationships(select(Bookmark))
        .where(Bookmark.user_id == user_id)
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc()),
    )
    return list(result.scalars().all())
