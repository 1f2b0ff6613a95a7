"""Liveness endpoint used by the deployment's uptime checks."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Overall status plus the result of the database check."""

    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """
    Report whether the API can reach PostgreSQL.

    Always answers 200 so uptime checks can read the body; a failed `SELECT 1`
    shows up as `degraded` with `database: unhealthy`.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        return HealthResponse(status="degraded", database="unhealthy")
    return HealthResponse(status="healthy", database="healthy")
