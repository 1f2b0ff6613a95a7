"""Authentication: signed session tokens and the cron secret check."""
import hmac
import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.session import get_async_session
from models.user import User
from services import user_service

logger = logging.getLogger(__name__)

SESSION_ALGORITHM = "HS256"
DEV_USER_EMAIL = "dev@localhost"

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_session_token(
    user: User,
    settings: Settings,
    expires_in: timedelta | None = None,
) -> str:
    """Issue a signed session token for the user."""
    lifetime = expires_in or timedelta(seconds=settings.session_max_age_seconds)
    now = datetime.now(UTC)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.session_secret, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> dict:
    """
    Decode and validate a session token.

    Raises:
        HTTPException: If the token is invalid or expired.
    """
    try:
        return jwt.decode(
            token,
            settings.session_secret,
            algorithms=[SESSION_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Session has expired")
    except jwt.PyJWTError as e:
        raise _unauthorized(f"Invalid session: {e}")


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Dependency that resolves the principal from the session.

    The token is read from the session cookie, or from an
    `Authorization: Bearer` header for API clients.

    In DEV_MODE, bypasses auth and returns a local development user.
    """
    if settings.dev_mode:
        return await user_service.get_or_create_user(db, DEV_USER_EMAIL, name="Developer")

    token = request.cookies.get(settings.session_cookie_name)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise _unauthorized("Not authenticated")

    payload = decode_session_token(token, settings)
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise _unauthorized("Invalid session: malformed subject")

    user = await user_service.get_user(db, user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def verify_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Dependency guarding the reminder sweep trigger.

    When CRON_SECRET is configured the request must carry it as a Bearer token.
    Without it the endpoint is open.
    """
    if not settings.cron_secret:
        return
    supplied = credentials.credentials if credentials is not None else ""
    if not hmac.compare_digest(supplied.encode(), settings.cron_secret.encode()):
        logger.warning("Rejected reminder sweep call with invalid cron secret")
        raise _unauthorized("Invalid cron secret")
