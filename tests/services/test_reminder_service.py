"""Tests for reminder scheduling and the sweep."""
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from models.reminder import Reminder, ReminderStatus
from models.user import User
from schemas.reminder import ReminderCreate
from services import reminder_service
from services.exceptions import BookmarkNotFoundError
from services.notification_service import NotificationError

# Completed reminders get a real clock_timestamp, so keep NOW near the wall clock
NOW = datetime.now(UTC).replace(microsecond=0)


async def _bookmark(db_session: AsyncSession, owner: User, url: str = "https://example.com/") -> Bookmark:
    bookmark = Bookmark(user_id=owner.id, url=url, domain="example.com", title="Saved page")
    db_session.add(bookmark)
    await db_session.flush()
    return bookmark


async def _reminder(
    db_session: AsyncSession,
    bookmark: Bookmark,
    scheduled_at: datetime,
    status: ReminderStatus = ReminderStatus.PENDING,
    message: str | None = None,
) -> Reminder:
    reminder = Reminder(
        bookmark=bookmark,
        scheduled_at=scheduled_at,
        status=status.value,
        message=message,
    )
    db_session.add(reminder)
    await db_session.flush()
    return reminder


async def _status(db_session: AsyncSession, reminder_id: UUID) -> str | None:
    result = await db_session.execute(select(Reminder.status).where(Reminder.id == reminder_id))
    return result.scalar_one_or_none()


class TestUpsertReminder:
    """Tests for upsert_reminder."""

    async def test__creates_pending(self, db_session: AsyncSession, user: User) -> None:
        bookmark = await _bookmark(db_session, user)
        reminder = await reminder_service.upsert_reminder(
            db_session, user.id,
            ReminderCreate(bookmark_id=bookmark.id, scheduled_at=NOW, message="hi"),
        )
        assert reminder.bookmark_id == bookmark.id
        assert reminder.status == ReminderStatus.PENDING
        assert reminder.message == "hi"

    async def test__reschedule_resets_failed(self, db_session: AsyncSession, user: User) -> None:
        """Rescheduling overwrites the single row, keeps the message and makes it PENDING again."""
        bookmark = await _bookmark(db_session, user)
        existing = await _reminder(db_session, bookmark, NOW, ReminderStatus.FAILED, "old")

        later = NOW + timedelta(days=1)
        reminder = await reminder_service.upsert_reminder(
            db_session, user.id, ReminderCreate(bookmark_id=bookmark.id, scheduled_at=later),
        )

        assert reminder.id == existing.id
        assert reminder.scheduled_at == later
        assert reminder.message == "old"
        assert await _status(db_session, existing.id) == "PENDING"
        rows = await db_session.execute(
            select(Reminder.id).where(Reminder.bookmark_id == bookmark.id),
        )
        assert len(rows.all()) == 1

    async def test__explicit_null_message_clears(self, db_session: AsyncSession, user: User) -> None:
        bookmark = await _bookmark(db_session, user)
        await _reminder(db_session, bookmark, NOW, message="old")

        reminder = await reminder_service.upsert_reminder(
            db_session, user.id,
            ReminderCreate(bookmark_id=bookmark.id, scheduled_at=NOW, message=None),
        )

        assert reminder.message is None

    def test__naive_time_is_utc(self) -> None:
        data = ReminderCreate(bookmark_id=UUID(int=1), scheduled_at=datetime(2030, 1, 1, 9, 0))
        assert data.scheduled_at.tzinfo is UTC

    async def test__foreign_bookmark(
        self, db_session: AsyncSession, user: User, other_user: User,
    ) -> None:
        bookmark = await _bookmark(db_session, other_user)
        with pytest.raises(BookmarkNotFoundError):
            await reminder_service.upsert_reminder(
                db_session, user.id, ReminderCreate(bookmark_id=bookmark.id, scheduled_at=NOW),
            )


class TestProcessDueReminders:
    """Tests for the sweep."""

    async def test__sends_due_and_skips_future(
        self,
        db_session: AsyncSession,
        user: User,
        sent_emails: AsyncMock,
    ) -> None:
        due = await _reminder(
            db_session, await _bookmark(db_session, user, "https://example.com/due"),
            NOW - timedelta(minutes=1), message="Time to read",
        )
        future = await _reminder(
            db_session, await _bookmark(db_session, user, "https://example.com/future"),
            NOW + timedelta(minutes=1),
        )

        summary = await reminder_service.process_due_reminders(db_session, now=NOW)

        assert summary.processed == 1
        assert summary.timestamp == NOW
        assert summary.results[0].id == due.id
        assert summary.results[0].status == "sent"
        assert await _status(db_session, due.id) == "COMPLETED"
        assert await _status(db_session, future.id) == "PENDING"
        sent_emails.assert_awaited_once_with(
            to=user.email,
            bookmark_title="Saved page",
            bookmark_url="https://example.com/due",
            message="Time to read",
        )

    async def test__second_run_sends_nothing(
        self,
        db_session: AsyncSession,
        user: User,
        sent_emails: AsyncMock,
    ) -> None:
        """Running the sweep twice never sends a reminder twice."""
        await _reminder(db_session, await _bookmark(db_session, user), NOW - timedelta(hours=1))

        first = await reminder_service.process_due_reminders(db_session, now=NOW)
        second = await reminder_service.process_due_reminders(db_session, now=NOW)

        assert first.processed == 1
        assert second.processed == 0
        assert sent_emails.await_count == 1

    async def test__failure_is_isolated(
        self,
        db_session: AsyncSession,
        user: User,
        sent_emails: AsyncMock,
    ) -> None:
        """One failed email marks that reminder FAILED and the rest still go out."""
        failing = await _reminder(
            db_session, await _bookmark(db_session, user, "https://example.com/fail"),
            NOW - timedelta(minutes=10),
        )
        ok = await _reminder(
            db_session, await _bookmark(db_session, user, "https://example.com/ok"),
            NOW - timedelta(minutes=5),
        )

        async def send(**kwargs: object) -> None:
            if kwargs["bookmark_url"] == "https://example.com/fail":
                raise NotificationError("Email provider returned HTTP 500")

        sent_emails.side_effect = send

        summary = await reminder_service.process_due_reminders(db_session, now=NOW)

        by_id = {result.id: result for result in summary.results}
        assert by_id[failing.id].status == "failed"
        assert by_id[failing.id].error == "Email provider returned HTTP 500"
        assert by_id[ok.id].status == "sent"
        assert await _status(db_session, failing.id) == "FAILED"
        assert await _status(db_session, ok.id) == "COMPLETED"

        # FAILED is terminal until rescheduled
        again = await reminder_service.process_due_reminders(db_session, now=NOW)
        assert again.processed == 0

    async def test__claimed_reminder_is_skipped(
        self,
        db_session: AsyncSession,
        user: User,
        sent_emails: AsyncMock,
    ) -> None:
        """A reminder another sweep already claimed is not sent again."""
        reminder = await _reminder(
            db_session, await _bookmark(db_session, user), NOW - timedelta(minutes=1),
        )
        await db_session.execute(
            update(Reminder)
            .where(Reminder.id == reminder.id)
            .values(status=ReminderStatus.PROCESSING.value)
            .execution_options(synchronize_session=False),
        )

        assert await reminder_service._process_reminder(db_session, reminder.id) is None
        sent_emails.assert_not_called()

    async def test__cleanup_respects_retention(
        self,
        db_session: AsyncSession,
        user: User,
        sent_emails: AsyncMock,  # noqa: ARG002
    ) -> None:
        """Old COMPLETED reminders are deleted; FAILED and recent ones stay."""
        old_done = await _reminder(
            db_session, await _bookmark(db_session, user, "https://example.com/1"),
            NOW - timedelta(days=30), ReminderStatus.COMPLETED,
        )
        recent_done = await _reminder(
            db_session, await _bookmark(db_session, user, "https://example.com/2"),
            NOW - timedelta(days=2), ReminderStatus.COMPLETED,
        )
        old_failed = await _reminder(
            db_session, await _bookmark(db_session, user, "https://example.com/3"),
            NOW - timedelta(days=30), ReminderStatus.FAILED,
        )
        await db_session.execute(
            update(Reminder)
            .where(Reminder.id == old_done.id)
            .values(updated_at=NOW - timedelta(days=8))
            .execution_options(synchronize_session=False),
        )
        await db_session.execute(
            update(Reminder)
            .where(Reminder.id == recent_done.id)
            .values(updated_at=NOW - timedelta(days=2))
            .execution_options(synchronize_session=False),
        )
        await db_session.execute(
            update(Reminder)
            .where(Reminder.id == old_failed.id)
            .values(updated_at=NOW - timedelta(days=30))
            .execution_options(synchronize_session=False),
        )

        summary = await reminder_service.process_due_reminders(db_session, now=NOW)

        assert summary.cleaned == 1
        assert await _status(db_session, old_done.id) is None
        assert await _status(db_session, recent_done.id) == "COMPLETED"
        assert await _status(db_session, old_failed.id) == "FAILED"


async def test_list_reminders_scoped_and_ordered(
    db_session: AsyncSession,
    user: User,
    other_user: User,
) -> None:
    late = await _reminder(
        db_session, await _bookmark(db_session, user, "https://example.com/late"), NOW,
    )
    early = await _reminder(
        db_session, await _bookmark(db_session, user, "https://example.com/early"),
        NOW - timedelta(days=1),
    )
    await _reminder(db_session, await _bookmark(db_session, other_user), NOW)

    reminders = await reminder_service.list_reminders(db_session, user.id)
    assert [r.id for r in reminders] == [early.id, late.id]
    assert reminders[0].bookmark.url == "https://example.com/early"
