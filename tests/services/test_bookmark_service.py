"""Tests for the bookmark service."""
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch
from uuid import UUID

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from models.reminder import Reminder, ReminderStatus
from models.user import User
from schemas.bookmark import BookmarkCreate, BookmarkUpdate
from schemas.tag import TagCreate
from services import bookmark_service, tag_service
from services.exceptions import BookmarkNotFoundError

pytestmark = pytest.mark.usefixtures("fake_metadata")


async def _create(db_session: AsyncSession, user: User, url: str, **fields: object) -> Bookmark:
    return await bookmark_service.create_bookmark(
        db_session, user.id, BookmarkCreate(url=url, **fields),
    )


async def _positions(db_session: AsyncSession, ids: list[UUID]) -> list[int]:
    result = await db_session.execute(
        select(Bookmark.id, Bookmark.position).where(Bookmark.id.in_(ids)),
    )
    by_id = dict(result.all())
    return [by_id[i] for i in ids]


async def test_create_uses_page_metadata(
    db_session: AsyncSession,
    user: User,
    fake_metadata: AsyncMock,
) -> None:
    bookmark = await _create(db_session, user, "https://example.com/article")

    fake_metadata.assert_awaited_once_with("https://example.com/article", 5.0)
    assert bookmark.title == "Example Page"
    assert bookmark.domain == "example.com"
    assert bookmark.position == 0
    assert bookmark.status == "PENDING"
    assert bookmark.reminder is None


async def test_create_with_reminder_and_tags(db_session: AsyncSession, user: User) -> None:
    tag = await tag_service.create_tag(db_session, user.id, TagCreate(name="later"))
    when = datetime(2030, 3, 1, 12, 0, tzinfo=UTC)

    bookmark = await _create(
        db_session, user, "https://example.com/r", reminder_at=when, tag_ids=[tag.id],
    )

    assert [t.name for t in bookmark.tag_objects] == ["later"]
    assert bookmark.reminder.scheduled_at == when
    assert bookmark.reminder.status == ReminderStatus.PENDING


async def test_get_is_scoped_to_owner(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    bookmark = await _create(db_session, user, "https://example.com/mine")
    assert await bookmark_service.get_bookmark(db_session, user.id, bookmark.id) is bookmark
    assert await bookmark_service.get_bookmark(db_session, other_user.id, bookmark.id) is None


async def test_update_applies_only_present_fields(db_session: AsyncSession, user: User) -> None:
    bookmark = await _create(db_session, user, "https://example.com/u", note="original")

    updated = await bookmark_service.update_bookmark(
        db_session, user.id, bookmark.id, BookmarkUpdate(status="DONE"),
    )

    assert updated.status == "DONE"
    assert updated.note == "original"
    assert updated.title == "Example Page"
    assert updated.is_favorite is False


async def test_update_foreign_bookmark(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    bookmark = await _create(db_session, user, "https://example.com/u")
    with pytest.raises(BookmarkNotFoundError):
        await bookmark_service.update_bookmark(
            db_session, other_user.id, bookmark.id, BookmarkUpdate(is_favorite=True),
        )


async def test_list_pagination_total(db_session: AsyncSession, user: User) -> None:
    for i in range(5):
        await _create(db_session, user, f"https://example.com/{i}")

    items, total = await bookmark_service.list_bookmarks(db_session, user.id, offset=3, limit=10)
    assert total == 5
    assert len(items) == 2


async def test_delete_cascades_reminder(db_session: AsyncSession, user: User) -> None:
    bookmark = await _create(
        db_session, user, "https://example.com/d", reminder_at=datetime(2030, 1, 1, tzinfo=UTC),
    )
    reminder_id = bookmark.reminder.id

    await bookmark_service.delete_bookmark(db_session, user.id, bookmark.id)

    result = await db_session.execute(select(Reminder.id).where(Reminder.id == reminder_id))
    assert result.scalar_one_or_none() is None


async def test_reorder_sets_positions(db_session: AsyncSession, user: User) -> None:
    a = await _create(db_session, user, "https://example.com/a")
    b = await _create(db_session, user, "https://example.com/b")
    c = await _create(db_session, user, "https://example.com/c")

    await bookmark_service.reorder_bookmarks(db_session, user.id, [b.id, c.id, a.id])

    assert await _positions(db_session, [a.id, b.id, c.id]) == [2, 0, 1]


async def test_reorder_empty_is_noop(db_session: AsyncSession, user: User) -> None:
    await bookmark_service.reorder_bookmarks(db_session, user.id, [])


async def test_reorder_is_all_or_nothing(db_session: AsyncSession, user: User) -> None:
    """A failure partway through leaves every position as it was."""
    a = await _create(db_session, user, "https://example.com/a")
    b = await _create(db_session, user, "https://example.com/b")
    c = await _create(db_session, user, "https://example.com/c")
    await bookmark_service.reorder_bookmarks(db_session, user.id, [a.id, b.id, c.id])

    real_set_position = bookmark_service._set_position
    calls = 0

    async def flaky(*args: object, **kwargs: object) -> None:
        nonlocal calls
        calls += 1
        if calls == 2:
            raise RuntimeError("connection lost")
        await real_set_position(*args, **kwargs)

    with patch.object(bookmark_service, "_set_position", new=flaky):
        with pytest.raises(RuntimeError):
            await bookmark_service.reorder_bookmarks(db_session, user.id, [c.id, b.id, a.id])

    assert await _positions(db_session, [a.id, b.id, c.id]) == [0, 1, 2]


async def test_reorder_rejects_foreign_ids(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    mine = await _create(db_session, user, "https://example.com/mine")
    theirs = await _create(db_session, other_user, "https://example.com/theirs")

    with pytest.raises(BookmarkNotFoundError):
        await bookmark_service.reorder_bookmarks(db_session, user.id, [theirs.id, mine.id])

    assert await _positions(db_session, [mine.id, theirs.id]) == [0, 0]


async def test_export_newest_first(db_session: AsyncSession, user: User, other_user: User) -> None:
    first = await _create(db_session, user, "https://example.com/1")
    second = await _create(db_session, user, "https://example.com/2")
    await _create(db_session, other_user, "https://example.com/other")

    exported = await bookmark_service.export_bookmarks(db_session, user.id)
    assert [b.id for b in exported] == [second.id, first.id]
