"""Pytest fixtures for testing."""
import os

# Settings are read when db.session is first imported; give it a URL before any
# app import. Tests never use this engine, they bind sessions to the test database.
os.environ.setdefault("DATABASE_URL", "postgresql+asyncpg://localhost/placeholder")
os.environ["DEV_MODE"] = "false"
os.environ["RESEND_API_KEY"] = ""
os.environ["CRON_SECRET"] = ""

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator  # noqa: E402
from contextlib import AsyncExitStack  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer  # noqa: E402

import models  # noqa: E402, F401
from models.base import Base  # noqa: E402
from models.user import User  # noqa: E402
from services.notification_service import EmailResult  # noqa: E402
from services.url_scraper import PageMetadata, fallback_favicon_url, get_domain  # noqa: E402

ClientFactory = Callable[[User], Awaitable[AsyncClient]]


@pytest.fixture(scope="session")
def database_url() -> Generator[str]:
    """
    URL of the test database.

    Uses TEST_DATABASE_URL when set (e.g. a CI service container), otherwise
    starts a throwaway PostgreSQL container for the session.
    """
    external = os.environ.get("TEST_DATABASE_URL")
    if external:
        yield external
        return
    with PostgresContainer("postgres:16", driver="asyncpg") as postgres:
        yield postgres.get_connection_url()


@pytest.fixture
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine]:
    """Create an async engine for testing."""
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_connection(async_engine: AsyncEngine) -> AsyncGenerator[AsyncConnection]:
    """
    Create a connection with a transaction that will be rolled back after the test.

    Each test runs in its own transaction, so tests don't affect each other.
    """
    async with async_engine.connect() as connection:
        transaction = await connection.begin()
        try:
            yield connection
        finally:
            await transaction.rollback()


@pytest.fixture
async def db_session(db_connection: AsyncConnection) -> AsyncGenerator[AsyncSession]:
    """
    Create an async session bound to the test transaction.

    Session commits and begin_nested() blocks become savepoints inside the
    outer test transaction.
    """
    session_factory = async_sessionmaker(
        bind=db_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    async with session_factory() as session:
        yield session


async def _insert_user(db_session: AsyncSession, email: str, name: str | None = None) -> User:
    user = User(email=email, name=name)
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Create extra users: `await user_factory("carol@example.com")`."""
    async def _make(email: str, name: str | None = None) -> User:
        return await _insert_user(db_session, email, name)

    return _make


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    """The main test user."""
    return await _insert_user(db_session, "alice@example.com", "Alice")


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second user who must never see the main user's private data."""
    return await _insert_user(db_session, "bob@example.com", "Bob")


@pytest.fixture
async def client_for(db_session: AsyncSession) -> AsyncGenerator[ClientFactory]:
    """
    Factory for test clients authenticated as a given user.

    Every client shares the test session, so data created through one client
    (or directly through db_session) is visible to the others.
    """
    from core.config import get_settings

    get_settings.cache_clear()

    from api.main import app
    from core.auth import create_session_token
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session

    async with AsyncExitStack() as stack:
        async def _make(as_user: User) -> AsyncClient:
            token = create_session_token(as_user, get_settings())
            return await stack.enter_async_context(
                AsyncClient(
                    transport=ASGITransport(app=app),
                    base_url="http://test",
                    headers={"Authorization": f"Bearer {token}"},
                ),
            )

        yield _make

    app.dependency_overrides.clear()


@pytest.fixture
async def client(client_for: ClientFactory, user: User) -> AsyncClient:
    """Client authenticated as the main test user."""
    return await client_for(user)


@pytest.fixture
async def other_client(client_for: ClientFactory, other_user: User) -> AsyncClient:
    """Client authenticated as the second user."""
    return await client_for(other_user)


@pytest.fixture
def fake_metadata() -> Generator[AsyncMock]:
    """
    Replace page fetching with a canned result so tests never hit the network.

    The title is always "Example Page"; domain and favicon follow the URL.
    """
    async def _fake(url: str, timeout: float = 5.0) -> PageMetadata:  # noqa: ASYNC109, ARG001
        domain = get_domain(url)
        return PageMetadata(
            title="Example Page",
            favicon_url=fallback_favicon_url(domain),
            domain=domain,
        )

    with patch(
        "services.url_scraper.fetch_metadata", new=AsyncMock(side_effect=_fake),
    ) as mock_fetch:
        yield mock_fetch


@pytest.fixture
def sent_emails() -> Generator[AsyncMock]:
    """Capture reminder emails instead of sending them."""
    with patch(
        "services.notification_service.send_reminder_email",
        new=AsyncMock(return_value=EmailResult(message_id="test-message", mock=True)),
    ) as mock_send:
        yield mock_send
