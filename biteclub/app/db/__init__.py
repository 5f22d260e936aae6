"""Async engine and session helpers.

The DSN is read from :func:`config.get_settings` (``DATABASE_URL``), e.g.::

    postgresql+asyncpg://u:p@host:5432/biteclub

Application code obtains sessions through :func:`get_session`, which FastAPI
routes use as a dependency. Tests replace the factory with
:func:`create_test_session`.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from config import get_settings

from ..models import Base
from ..obs import add_query_logger

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return a singleton async engine for the application database."""
    global _engine, _sessionmaker
    if _engine is None:
        _engine = create_async_engine(get_settings().database_url, future=True)
        add_query_logger(_engine, "main")
        _sessionmaker = async_sessionmaker(
            _engine, expire_on_commit=False, class_=AsyncSession
        )
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    if _sessionmaker is None:
        get_engine()
    assert _sessionmaker is not None  # for type checkers
    return _sessionmaker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session and ensure it is closed afterwards."""
    async with get_sessionmaker()() as session:
        yield session


async def create_test_session(
    url: str = "sqlite+aiosqlite://",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Return a session factory and engine with the schema created.

    The default in-memory database uses a static pool so that every session
    shares the same data. Pass a file URL when tests need independent
    connections.
    """

    kwargs: dict = {}
    if url in {"sqlite+aiosqlite://", "sqlite+aiosqlite:///:memory:"}:
        kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    engine = create_async_engine(url, **kwargs)
    add_query_logger(engine, "test")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    return factory, engine


__all__ = [
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "create_test_session",
]
