"""Async engine and session factory for the configured credential store."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from credvault.core.config import get_settings


@dataclass(frozen=True)
class _Database:
    url: str
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]


_database: _Database | None = None


def _connect(url: str) -> _Database:
    engine = create_async_engine(url, pool_pre_ping=not url.startswith("sqlite"))
    return _Database(
        url=url,
        engine=engine,
        sessionmaker=async_sessionmaker(engine, expire_on_commit=False),
    )


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to ``settings.database_url``.

    The engine is built on first use and rebuilt if the configured URL changes;
    call :func:`dispose_engine` first to release the old pool.
    """
    global _database
    url = get_settings().database_url
    if _database is None or _database.url != url:
        _database = _connect(url)
    return _database.sessionmaker


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker()() as session:
        yield session


async def dispose_engine() -> None:
    """Close the pooled connections of the current engine, if one was built."""
    global _database
    database, _database = _database, None
    if database is not None:
        await database.engine.dispose()
