"""
Reminder lifecycle: scheduling, listing and the periodic sweep.

A reminder starts PENDING (on creation or reschedule). The sweep moves each due
reminder to COMPLETED when its email was handed to the provider, or to FAILED
when sending raised. FAILED is terminal until the owner reschedules.
"""
import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager
from uuid6 import uuid7

from core.config import get_settings
from models.bookmark import Bookmark
from models.reminder import Reminder, ReminderStatus
from models.user import User
from schemas.reminder import ReminderCreate, ReminderOutcome, ReminderSweepResponse
from services import notification_service
from services.exceptions import BookmarkNotFoundError

logger = logging.getLogger(__name__)


async def upsert_reminder(
    db: AsyncSession,
    user_id: UUID,
    data: ReminderCreate,
) -> Reminder:
    """
    Schedule a reminder for one of the user's bookmarks.

    A bookmark has at most one reminder: scheduling again overwrites the time (and the
    message, when one is sent) in place and resets the status to PENDING.

    Raises:
        BookmarkNotFoundError: If the bookmark does not exist or belongs to someone else.
    """
    owned = await db.execute(
        select(Bookmark.id).where(
            Bookmark.id == data.bookmark_id,
            Bookmark.user_id == user_id,
        ),
    )
    if owned.scalar_one_or_none() is None:
        raise BookmarkNotFoundError()

    changes = {
        "scheduled_at": data.scheduled_at,
        "status": ReminderStatus.PENDING.value,
        "updated_at": func.clock_timestamp(),
    }
    # An omitted message keeps the saved one; an explicit null clears it
    if "message" in data.model_fields_set:
        changes["message"] = data.message

    stmt = (
        insert(Reminder)
        .values(
            id=uuid7(),
            bookmark_id=data.bookmark_id,
            scheduled_at=data.scheduled_at,
            message=data.message,
            status=ReminderStatus.PENDING.value,
        )
        .on_conflict_do_update(
            index_elements=[Reminder.bookmark_id],
            set_=changes,
        )
        .returning(Reminder)
    )
    result = await db.scalars(stmt, execution_options={"populate_existing": True})
    return result.one()


async def list_reminders(db: AsyncSession, user_id: UUID) -> list[Reminder]:
    """The user's reminders with their bookmarks, soonest first."""
    result = await db.execute(
        select(Reminder)
        .join(Reminder.bookmark)
        .options(contains_eager(Reminder.bookmark))
        .where(Bookmark.user_id == user_id)
        .order_by(Reminder.scheduled_at.asc(), Reminder.id.asc()),
    )
    return list(result.scalars().all())


async def _finish(db: AsyncSession, reminder_id: UUID, status: ReminderStatus) -> None:
    await db.execute(
        update(Reminder)
        .where(Reminder.id == reminder_id)
        .values(status=status.value, updated_at=func.clock_timestamp())
        .execution_options(synchronize_session=False),
    )


async def _process_reminder(db: AsyncSession, reminder_id: UUID) -> ReminderOutcome | None:
    """
    Claim, send and settle one due reminder inside a savepoint.

    Returns None when another sweep already claimed the reminder.
    """
    async with db.begin_nested():
        # Only the sweep whose UPDATE matched the PENDING row goes on to send
        claimed = await db.execute(
            update(Reminder)
            .where(
                Reminder.id == reminder_id,
                Reminder.status == ReminderStatus.PENDING.value,
            )
            .values(status=ReminderStatus.PROCESSING.value)
            .execution_options(synchronize_session=False),
        )
        if claimed.rowcount != 1:
            logger.info("Reminder %s already claimed, skipping", reminder_id)
            return None

        row = (
            await db.execute(
                select(Reminder.message, Bookmark.title, Bookmark.url, User.email)
                .join(Bookmark, Reminder.bookmark_id == Bookmark.id)
                .join(User, Bookmark.user_id == User.id)
                .where(Reminder.id == reminder_id),
            )
        ).one()

        try:
            await notification_service.send_reminder_email(
                to=row.email,
                bookmark_title=row.title,
                bookmark_url=row.url,
                message=row.message,
            )
        except Exception as e:
            # Any sender failure settles this reminder only; the sweep continues
            logger.exception("Failed to send reminder %s", reminder_id)
            await _finish(db, reminder_id, ReminderStatus.FAILED)
            return ReminderOutcome(id=reminder_id, status="failed", error=str(e))

        await _finish(db, reminder_id, ReminderStatus.COMPLETED)
        return ReminderOutcome(id=reminder_id, status="sent", email=row.email)


async def cleanup_completed_reminders(db: AsyncSession, now: datetime) -> int:
    """
    Delete COMPLETED reminders last updated before the retention window.

    FAILED reminders are kept.

    Returns:
        Number of reminders deleted.
    """
    cutoff = now - timedelta(days=get_settings().reminder_retention_days)
    result = await db.execute(
        delete(Reminder)
        .where(
            Reminder.status == ReminderStatus.COMPLETED.value,
            Reminder.updated_at < cutoff,
        )
        .execution_options(synchronize_session=False),
    )
    return result.rowcount


async def process_due_reminders(
    db: AsyncSession,
    now: datetime | None = None,
) -> ReminderSweepResponse:
    """
    Send every PENDING reminder whose time has come, then prune old COMPLETED ones.

    Each reminder is settled independently, so one failed email never stops the
    rest of the batch. Running the sweep again right away sends nothing twice:
    settled reminders are no longer PENDING.

    Args:
        db: Database session.
        now: Reference time for "due" and for retention. Defaults to the current UTC time.
    """
    now = now or datetime.now(UTC)

    result = await db.execute(
        select(Reminder.id)
        .where(
            Reminder.status == ReminderStatus.PENDING.value,
            Reminder.scheduled_at <= now,
        )
        .order_by(Reminder.scheduled_at.asc()),
    )
    due_ids = list(result.scalars().all())
    logger.info("Processing %d due reminders", len(due_ids))

    outcomes: list[ReminderOutcome] = []
    for reminder_id in due_ids:
        outcome = await _process_reminder(db, reminder_id)
        if outcome is not None:
            outcomes.append(outcome)

    cleaned = await cleanup_completed_reminders(db, now)
    failed = sum(1 for outcome in outcomes if outcome.status == "failed")
    logger.info(
        "Reminder sweep done: %d processed, %d failed, %d cleaned",
        len(outcomes), failed, cleaned,
    )
    return ReminderSweepResponse(
        processed=len(outcomes),
        results=outcomes,
        cleaned=cleaned,
        timestamp=now,
    )
