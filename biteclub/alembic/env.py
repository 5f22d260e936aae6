"""Alembic environment for the Bite Club schema.

The database URL comes from ``-x db_url=...`` or the application settings.
Async URLs run through an async engine; offline mode renders SQL with the
matching synchronous dialect.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url
from sqlalchemy.exc import NoSuchModuleError
from sqlalchemy.ext.asyncio import async_engine_from_config

from biteclub.app.models import Base
from config import get_settings

# async driver -> sync driver used when only SQL text is generated
SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql",
    "sqlite+aiosqlite": "sqlite",
}

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get(
        "db_url", get_settings().database_url
    )


def _is_async_url(url: str) -> bool:
    """Return True when ``url`` names an async driver that is installed."""

    parsed = make_url(url)
    if parsed.drivername not in SYNC_DRIVERS:
        return False
    try:
        dialect = parsed.get_dialect()
    except NoSuchModuleError as exc:
        raise RuntimeError(
            "Async database driver not installed; pass -x db_url=<sync url>"
        ) from exc
    if not getattr(dialect, "is_async", False):
        raise RuntimeError(f"{parsed.drivername} did not resolve to an async dialect")
    return True


def _configure(backend: str, **kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=backend == "sqlite",
        **kwargs,
    )


def run_migrations_offline() -> None:
    url = make_url(database_url())
    sync_url = url.set(drivername=SYNC_DRIVERS.get(url.drivername, url.drivername))
    _configure(
        url.get_backend_name(),
        url=sync_url.render_as_string(hide_password=False),
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection) -> None:
    _configure(connection.dialect.name, connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = database_url()
    settings = {"sqlalchemy.url": url}
    if _is_async_url(url):
        engine = async_engine_from_config(
            settings, prefix="sqlalchemy.", poolclass=pool.NullPool
        )
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
        await engine.dispose()
        return

    engine = engine_from_config(settings, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        _migrate(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
