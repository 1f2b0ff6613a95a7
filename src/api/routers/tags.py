"""Tag management endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from api.helpers import SERVICE_ERRORS, to_http_exception
from models.user import User
from schemas.tag import TagCreate, TagResponse
from services import tag_service

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=list[TagResponse])
async def list_tags(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[TagResponse]:
    """Get all tags for the current user, sorted by name."""
    tags = await tag_service.list_tags(db, current_user.id)
    return [TagResponse.model_validate(tag) for tag in tags]


@router.post("/", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    data: TagCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> TagResponse:
    """
    Create a tag.

    Returns 409 if the user already has a tag with this name.
    """
    try:
        tag = await tag_service.create_tag(db, current_user.id, data)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
    return TagResponse.model_validate(tag)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """
    Delete a tag. It is removed from every bookmark that carried it.

    Returns 404 if the tag doesn't exist or belongs to another user.
    """
    try:
        await tag_service.delete_tag(db, current_user.id, tag_id)
    except SERVICE_ERRORS as e:
        raise to_http_exception(e) from e
