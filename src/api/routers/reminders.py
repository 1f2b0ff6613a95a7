"""Reminder scheduling endpoints and the sweep trigger."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user, verify_cron_secret
from api.helpers import SERVICE_ERRORS, to_http_exception
from models.user import User
from schemas.reminder import (
    ReminderCreate,
    ReminderResponse,
    ReminderSweepResponse,
    ReminderWithBookmarkResponse,
)
from services import reminder_service

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("/", response_model=list[ReminderWithBookmarkResponse])
async def list_reminders(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[ReminderWithBookmarkResponse]:
    """List the current user's reminders with their bookmarks, soonest first."""
    reminders = await reminder_service.list_reminders(db, current_user.id)
    return [ReminderWithBookmarkResponse.model_validate(r) for r in reminders]


@router.post("/", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    data: ReminderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ReminderResponse:
    """
    Schedule a reminder for a bookmark.

    If the bookmark already has a reminder it is rescheduled in place and set
    back to PENDING. Returns 404 if the bookmark is not the caller's.
    """
    try:
        reminder = await reminder_service.upsert_reminder(db, current_user.id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return ReminderResponse.model_validate(reminder)


@router.api_route(
    "/process",
    methods=["GET", "POST"],
    response_model=ReminderSweepResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def process_reminders(
    db: AsyncSession = Depends(get_async_session),
) -> ReminderSweepResponse:
    """
    Send all due reminders and prune old completed ones.

    Called by an external scheduler. When CRON_SECRET is set the request must
    carry `Authorization: Bearer <CRON_SECRET>`.
    """
    return await reminder_service.process_due_reminders(db)
