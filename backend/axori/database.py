"""Database engine, session factory, and declarative base.

All durable-side tables (properties, learning hub progress and
bookmarks) share one DeclarativeBase.  Rows are scoped per account by
their `user_id` / `portfolio_id` columns.
"""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from axori.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=20,
    max_overflow=10,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Timezone-aware now for timestamp columns."""
    return datetime.now(timezone.utc)


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a session, committing on success and rolling back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
