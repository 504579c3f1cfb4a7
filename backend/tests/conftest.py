"""Pytest configuration and fixtures for Axori tests.

Controller tests run against the in-memory fakes in `fakes.py`.
Endpoint tests run the real app against an in-memory SQLite database,
so no Postgres, Redis server, or network is needed.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import axori.models  # noqa: F401  register tables on Base.metadata
from axori.config import settings
from axori.database import Base, get_db
from axori.learning_hub.staging import StagingStore
from axori.main import app
from fakes import FakeEnrichment, FakePersistence, FakeRedis, FakeTransfer

TEST_USER_ID = "user_123"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def make_token(user_id: str) -> str:
    return jwt.encode({"sub": user_id}, settings.secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_headers() -> dict:
    """Bearer headers for the default test user."""
    return {"Authorization": f"Bearer {make_token(TEST_USER_ID)}"}


@pytest.fixture
def other_user_headers() -> dict:
    return {"Authorization": f"Bearer {make_token('user_other')}"}


# ── Staging store ────────────────────────────────────────────────

@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def staging_store(fake_redis) -> StagingStore:
    return StagingStore(fake_redis, account_id=TEST_USER_ID, prefix="test:learning-hub")


@pytest_asyncio.fixture
async def seeded_store(staging_store) -> StagingStore:
    """Staging store holding one term, one bookmark, and one finished path."""
    await staging_store.mark_term_viewed("cap-rate")
    await staging_store.add_bookmark("article", "brrrr-method", "The BRRRR Method")
    await staging_store.record_lesson_completed("first-rental", "intro", total_lessons=1)
    return staging_store


# ── Controller gateways ──────────────────────────────────────────

@pytest.fixture
def persistence() -> FakePersistence:
    return FakePersistence()


@pytest.fixture
def enrichment(persistence) -> FakeEnrichment:
    """Enrichment fake sharing the persistence event log."""
    return FakeEnrichment(events=persistence.events)


@pytest.fixture
def transfer() -> FakeTransfer:
    return FakeTransfer()


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "wizard: Property wizard controller tests")
    config.addinivalue_line("markers", "migration: Learning hub migration tests")
    config.addinivalue_line("markers", "api: HTTP client and endpoint tests")
    config.addinivalue_line("markers", "slow: Slow tests")
