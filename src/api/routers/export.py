"""Bookmark export endpoint."""
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.user import User
from schemas.bookmark import BookmarkResponse
from services import bookmark_service, export_service

router = APIRouter(prefix="/export", tags=["export"])


@router.get("/", response_model=None)
async def export_bookmarks(
    format: Literal["json", "csv"] = Query(default="json", description="Export format"),  # noqa: A002
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[BookmarkResponse] | Response:
    """
    Export all of the caller's bookmarks, newest first.

    `format=csv` returns a downloadable file with the columns URL, Title,
    Domain, Note, IsFavorite, IsPinned, Status and CreatedAt.
    """
    bookmarks = await bookmark_service.export_bookmarks(db, current_user.id)
    if format == "csv":
        filename = export_service.export_filename(datetime.now(UTC).date())
        return Response(
            content=export_service.bookmarks_to_csv(bookmarks),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return [BookmarkResponse.model_validate(b) for b in bookmarks]
