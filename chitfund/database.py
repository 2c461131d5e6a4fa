"""Database engine and session factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from chitfund.config.settings import settings


def create_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Create the async engine for the configured database."""
    url = url or settings.async_database_url
    if url.startswith("sqlite") and ":memory:" not in url:
        kwargs.setdefault("poolclass", NullPool)
    return create_async_engine(
        url,
        echo=settings.database_echo,
        **kwargs,
    )


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create a session maker bound to ``engine``."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Yield a session for one request.

    Services own commit/rollback; this only guarantees the session is
    rolled back and closed if the caller fails halfway.
    """
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
