"""Shared fixtures: a seeded SQLite database and acting contexts."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from biteclub.app.db import create_test_session
from biteclub.tests.conftest_world import World, seed


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio for anyio tests."""
    return "asyncio"


@pytest.fixture
async def db():
    factory, engine = await create_test_session()
    yield factory
    await engine.dispose()


@pytest.fixture
async def session(db) -> AsyncSession:
    async with db() as session:
        yield session


@pytest.fixture
async def world(session) -> World:
    return await seed(session)


@pytest.fixture
async def file_db(tmp_path):
    """Database with independent connections for interleaving tests."""

    factory, engine = await create_test_session(
        f"sqlite+aiosqlite:///{tmp_path / 'biteclub.db'}"
    )
    yield factory
    await engine.dispose()
