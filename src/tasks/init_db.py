"""
Create all tables from the model metadata.

Usage:
    python -m tasks.init_db
"""
import asyncio
import logging

import models  # noqa: F401  (registers every table on Base.metadata)
from db.session import dispose_engine, engine
from models.base import Base

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))


async def _main() -> None:
    try:
        await create_tables()
    finally:
        await dispose_engine()


def main() -> None:
    """Entry point for running as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(_main())


if __name__ == "__main__":
    main()
