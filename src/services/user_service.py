"""Service layer for user lookup and creation."""
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User


async def get_user(db: AsyncSession, user_id: UUID) -> User | None:
    """Return the user with this id, or None."""
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Case-insensitive lookup by email."""
    result = await db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower()),
    )
    return result.scalar_one_or_none()


async def get_or_create_user(
    db: AsyncSession,
    email: str,
    name: str | None = None,
) -> User:
    """
    Get the user with this email, creating it on first use.

    Note: Uses flush(), not commit. Session generator handles commit at request end.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        user = User(email=email.strip().lower(), name=name)
        db.add(user)
        await db.flush()
    return user
