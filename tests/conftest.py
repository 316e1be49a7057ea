"""Shared test fixtures for the provisioner test suite.

Uses an in-memory SQLite database as the configuration store. SQLAlchemy
adapts the JSON column type to SQLite, and each test gets a fresh database.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from provisioner.core.config import Settings, get_settings
from provisioner.db.models import Base, RepositoryConfig
from provisioner.db.session import get_db
from provisioner.main import create_app

TEST_WEBHOOK_SECRET = "test-webhook-secret"

CUSTOMIZED_REPO = "acme/payments"

CUSTOMIZED_CONFIG = {
    "technology": "python",
    "runner": {"type": "self-hosted", "labels": ["gpu", "linux"]},
    "triggers": {
        "workflow_dispatch": True,
        "push": {"active": True, "branches": "main, dev"},
        "pull_request": {"active": True, "branches": "main"},
        "schedule": {"active": True, "cron": "0 0 * * *"},
    },
    "notify": "slack",
    "docker": True,
    "deploy": "kubernetes",
}


@pytest.fixture
async def async_engine():
    """Create a fresh async SQLite engine for each test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a test DB session."""
    session_factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded_db(db_session) -> AsyncSession:
    """Store one customised repository configuration."""
    db_session.add(RepositoryConfig(full_name=CUSTOMIZED_REPO, config=CUSTOMIZED_CONFIG))
    await db_session.commit()
    return db_session


def _override_settings() -> Settings:
    return Settings(
        github_app_id="12345",
        github_private_key="unused-in-tests",
        github_webhook_secret=TEST_WEBHOOK_SECRET,
        database_url="sqlite+aiosqlite:///:memory:",
        sentry_dsn="",
        debug=False,
    )


@pytest.fixture
def app(async_engine):
    """Create a FastAPI app with DB + settings dependencies overridden.

    The SlowAPI limiter keeps its buckets in process memory, so they are
    reset before each test.
    """
    from provisioner.core.limiter import limiter

    limiter.reset()

    test_app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        session_factory = async_sessionmaker(
            async_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_settings] = _override_settings
    return test_app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client wired to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seeded_client(app, seeded_db) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over a store holding CUSTOMIZED_CONFIG."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
