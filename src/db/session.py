"""
Process-wide async engine and the per-request session dependency.

The engine and its pool are built once at import from settings and disposed
by the application lifespan; no request constructs its own engine.
"""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def dispose_engine() -> None:
    """Close all pooled connections. Called once at application shutdown."""
    await engine.dispose()


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    One session per request.

    Services only flush; the request commits here when the handler returns and
    rolls back if it raised. Inner all-or-nothing steps (reorder, room creation,
    each reminder in a sweep) run in `begin_nested()` savepoints on this session.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
