"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database. The single connection is
shared through ``StaticPool`` so fixture sessions and request sessions see
the same data once it is committed.
"""

import os
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("EMAIL_BACKEND", "log")

from app.core.dependencies import get_db, get_mailer  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models import User  # noqa: E402
from tests.helpers import RecordingMailer, create_user  # noqa: E402


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Async DB session for seeding and calling services directly."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
async def client(session_factory, mailer) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client with the DB session and mailer dependencies overridden."""

    async def _test_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _test_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_mailer, None)


@pytest.fixture
async def owner(db: AsyncSession) -> User:
    return await create_user(db, "owner")


@pytest.fixture
async def alice(db: AsyncSession) -> User:
    return await create_user(db, "alice")


@pytest.fixture
async def bob(db: AsyncSession) -> User:
    return await create_user(db, "bob")


@pytest.fixture
async def carol(db: AsyncSession) -> User:
    return await create_user(db, "carol")
