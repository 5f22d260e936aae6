import importlib
import logging.config
import sys
import types

import alembic
import pytest
from sqlalchemy.exc import NoSuchModuleError

import config as app_config


class _NoopTransaction:
    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False


def _load_env(monkeypatch, database_url, x_args=None):
    calls = []
    fake_context = types.SimpleNamespace(
        config=types.SimpleNamespace(config_file_name=None),
        get_x_argument=lambda as_dictionary=True: dict(x_args or {}),
        is_offline_mode=lambda: True,
        configure=lambda **kwargs: calls.append(kwargs),
        begin_transaction=lambda: _NoopTransaction(),
        run_migrations=lambda: None,
    )
    monkeypatch.setattr(alembic, "context", fake_context)
    monkeypatch.setattr(logging.config, "fileConfig", lambda *a, **k: None)
    monkeypatch.setattr(
        app_config,
        "get_settings",
        lambda: types.SimpleNamespace(database_url=database_url),
    )
    sys.modules.pop("biteclub.alembic.env", None)
    env = importlib.import_module("biteclub.alembic.env")
    return env, calls


@pytest.fixture
def env(monkeypatch):
    module, _ = _load_env(monkeypatch, "postgresql+asyncpg://localhost/biteclub")
    return module


def test_offline_mode_renders_with_the_sync_dialect(monkeypatch):
    _, calls = _load_env(monkeypatch, "postgresql+asyncpg://app:pw@db/biteclub")
    assert len(calls) == 1
    assert calls[0]["url"] == "postgresql://app:pw@db/biteclub"
    assert calls[0]["literal_binds"] is True
    assert calls[0]["render_as_batch"] is False
    assert "students" in calls[0]["target_metadata"].tables


def test_offline_mode_prefers_the_command_line_url(monkeypatch):
    _, calls = _load_env(
        monkeypatch,
        "postgresql+asyncpg://app:pw@db/biteclub",
        x_args={"db_url": "sqlite+aiosqlite:///./scratch.db"},
    )
    assert calls[0]["url"] == "sqlite:///./scratch.db"
    assert calls[0]["render_as_batch"] is True


def test_is_async_url_detects_async(env):
    assert env._is_async_url("sqlite+aiosqlite:///./biteclub.db") is True


def test_is_async_url_detects_sync(env):
    assert env._is_async_url("postgresql://localhost/biteclub") is False


def test_is_async_url_missing_driver(env, monkeypatch):
    def _missing():
        raise NoSuchModuleError("asyncpg")

    fake_url = types.SimpleNamespace(
        drivername="postgresql+asyncpg", get_dialect=_missing
    )
    monkeypatch.setattr(env, "make_url", lambda _: fake_url)
    with pytest.raises(RuntimeError, match="Async database driver not installed"):
        env._is_async_url("postgresql+asyncpg://localhost/biteclub")


def test_is_async_url_rejects_sync_dialect(env, monkeypatch):
    class SyncDialect:
        is_async = False

    fake_url = types.SimpleNamespace(
        drivername="postgresql+asyncpg", get_dialect=lambda: SyncDialect
    )
    monkeypatch.setattr(env, "make_url", lambda _: fake_url)
    with pytest.raises(RuntimeError, match="did not resolve to an async dialect"):
        env._is_async_url("postgresql+asyncpg://localhost/biteclub")
