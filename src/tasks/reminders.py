"""
Scheduled reminder sweep.

Sends every due reminder and prunes old completed ones. Designed to run as a
cron job (e.g., every five minutes) where calling the HTTP trigger is not an
option.

Usage:
    python -m tasks.reminders
"""
import asyncio
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from db.session import async_session_factory, dispose_engine
from schemas.reminder import ReminderSweepResponse
from services.reminder_service import process_due_reminders

logger = logging.getLogger(__name__)


async def run_reminder_sweep(
    db: AsyncSession | None = None,
    now: datetime | None = None,
) -> ReminderSweepResponse:
    """
    Run one sweep and commit its result.

    Args:
        db: Database session. If None, creates one from async_session_factory.
        now: Reference time. Defaults to datetime.now(UTC).
    """
    logger.info("Starting reminder sweep")

    async def _run(session: AsyncSession) -> ReminderSweepResponse:
        summary = await process_due_reminders(session, now=now)
        await session.commit()
        return summary

    if db is not None:
        summary = await _run(db)
    else:
        async with async_session_factory() as session:
            summary = await _run(session)

    logger.info(
        "Reminder sweep complete: processed=%d cleaned=%d",
        summary.processed, summary.cleaned,
    )
    return summary


async def _main() -> None:
    try:
        await run_reminder_sweep()
    finally:
        await dispose_engine()


def main() -> None:
    """Entry point for running the sweep as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(_main())


if __name__ == "__main__":
    main()
