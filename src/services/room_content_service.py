"""
Base service class for content that is either personal or shared in a room.

Notes and todos follow the same visibility rules: with no room_id only the
creator sees the item; with a room_id every member of the room sees it, any
member may edit it, and only the creator or a room OWNER/ADMIN may delete it.
"""
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute, selectinload

from models.base import Base
from services.authorization import (
    check_can_delete,
    check_can_read,
    check_can_update,
    require_membership,
)
from services.exceptions import NotFoundError

T = TypeVar("T", bound=Base)


class RoomContentService(ABC, Generic[T]):
    """
    Shared CRUD for room-scopable content.

    Subclasses must define:
    - model: The SQLAlchemy model class (with user_id, room_id and a user relationship)
    - not_found_error: NotFoundError subclass raised for missing or invisible items
    """

    model: type[T]
    not_found_error: type[NotFoundError]

    @abstractmethod
    def _list_ordering(self) -> list[InstrumentedAttribute]:
        """Columns (with direction) used to order list results."""
        ...

    @abstractmethod
    def _build(self, user_id: UUID, data: BaseModel) -> T:
        """Construct a new, unsaved item from validated create data."""
        ...

    async def _refresh_with_user(self, db: AsyncSession, item: T) -> None:
        """Refresh item and eagerly load the creator for the response."""
        await db.refresh(item)
        await db.refresh(item, attribute_names=["user"])

    async def _load(self, db: AsyncSession, item_id: UUID) -> T:
        result = await db.execute(
            select(self.model)
            .options(selectinload(self.model.user))
            .where(self.model.id == item_id),
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise self.not_found_error()
        return item

    async def list_items(
        self,
        db: AsyncSession,
        user_id: UUID,
        room_id: UUID | None = None,
    ) -> list[T]:
        """
        List personal items, or a room's items when room_id is given.

        Raises:
            RoomNotFoundError: If room_id is given and the user is not a member.
        """
        query = select(self.model).options(selectinload(self.model.user))
        if room_id is None:
            query = query.where(
                self.model.user_id == user_id,
                self.model.room_id.is_(None),
            )
        else:
            await require_membership(db, room_id, user_id)
            query = query.where(self.model.room_id == room_id)

        result = await db.execute(query.order_by(*self._list_ordering()))
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, user_id: UUID, item_id: UUID) -> T:
        """
        Get an item the user may read.

        Raises:
            NotFoundError: If the item does not exist or is not visible to the user.
        """
        item = await self._load(db, item_id)
        await check_can_read(db, user_id, item, self.not_found_error)
        return item

    async def create(self, db: AsyncSession, user_id: UUID, data: Any) -> T:
        """
        Create an item, personal or (with data.room_id) in a room.

        Raises:
            RoomNotFoundError: If the room is given and the user is not a member.
        """
        if data.room_id is not None:
            await require_membership(db, data.room_id, user_id)

        item = self._build(user_id, data)
        db.add(item)
        await db.flush()
        await self._refresh_with_user(db, item)
        return item

    async def update(
        self,
        db: AsyncSession,
        user_id: UUID,
        item_id: UUID,
        data: BaseModel,
    ) -> T:
        """
        Apply the fields present in `data`.

        Raises:
            NotFoundError: If the item does not exist or is not visible to the user.
        """
        item = await self._load(db, item_id)
        await check_can_update(db, user_id, item, self.not_found_error)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(item, field, value)

        item.updated_at = func.clock_timestamp()
        await db.flush()
        await self._refresh_with_user(db, item)
        return item

    async def delete(self, db: AsyncSession, user_id: UUID, item_id: UUID) -> None:
        """
        Delete an item.

        Raises:
            NotFoundError: If the item does not exist or is not visible to the user.
            PermissionDeniedError: If the user is a room member but neither the
                creator nor an OWNER/ADMIN.
        """
        item = await self._load(db, item_id)
        await check_can_delete(db, user_id, item, self.not_found_error)
        await db.delete(item)
        await db.flush()
