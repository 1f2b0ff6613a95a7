"""Bookmark CRUD, search and reorder endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from api.helpers import SERVICE_ERRORS, to_http_exception
from models.bookmark import BookmarkStatus
from models.user import User
from schemas.bookmark import (
    BookmarkCreate,
    BookmarkListResponse,
    BookmarkReorderRequest,
    BookmarkResponse,
    BookmarkUpdate,
)
from services import bookmark_service

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.post("/", response_model=BookmarkResponse, status_code=201)
async def create_bookmark(
    data: BookmarkCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """
    Save a link.

    Title and favicon are fetched from the page; if the page cannot be fetched
    the bookmark is still saved without a title. Pass `reminder_at` to schedule
    an email reminder in the same request.
    """
    try:
        bookmark = await bookmark_service.create_bookmark(db, current_user.id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return BookmarkResponse.model_validate(bookmark)


@router.get("/", response_model=BookmarkListResponse)
async def list_bookmarks(
    status: BookmarkStatus | None = Query(default=None, description="Filter by status"),
    tag_id: UUID | None = Query(default=None, description="Filter by tag"),
    q: str | None = Query(default=None, description="Search title, url, note and domain"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkListResponse:
    """
    List bookmarks for the current user.

    Sorted by manual position, then pinned first, favorites first, newest first.
    """
    bookmarks, total = await bookmark_service.list_bookmarks(
        db=db,
        user_id=current_user.id,
        status=status,
        tag_id=tag_id,
        query=q,
        offset=offset,
        limit=limit,
    )
    items = [BookmarkResponse.model_validate(b) for b in bookmarks]
    return BookmarkListResponse(
        items=items,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(items) < total,
    )


@router.get("/search", response_model=list[BookmarkResponse])
async def search_bookmarks(
    q: str | None = Query(default=None, description="Search text"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[BookmarkResponse]:
    """Quick search returning at most 20 bookmarks; empty when q is empty."""
    bookmarks = await bookmark_service.search_bookmarks(db, current_user.id, q)
    return [BookmarkResponse.model_validate(b) for b in bookmarks]


@router.post("/reorder")
async def reorder_bookmarks(
    data: BookmarkReorderRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    """Set manual positions from an ordered list of bookmark ids (all or nothing)."""
    try:
        await bookmark_service.reorder_bookmarks(db, current_user.id, data.bookmark_ids)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return {"success": True}


@router.get("/{bookmark_id}", response_model=BookmarkResponse)
async def get_bookmark(
    bookmark_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Get a single bookmark by ID."""
    bookmark = await bookmark_service.get_bookmark(db, current_user.id, bookmark_id)
    if bookmark is None:
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return BookmarkResponse.model_validate(bookmark)


@router.patch("/{bookmark_id}", response_model=BookmarkResponse)
async def update_bookmark(
    bookmark_id: UUID,
    data: BookmarkUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Update the fields present in the body; omitted fields keep their values."""
    try:
        bookmark = await bookmark_service.update_bookmark(
            db, current_user.id, bookmark_id, data,
        )
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return BookmarkResponse.model_validate(bookmark)


@router.delete("/{bookmark_id}", status_code=204)
async def delete_bookmark(
    bookmark_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a bookmark and its reminder."""
    try:
        await bookmark_service.delete_bookmark(db, current_user.id, bookmark_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
