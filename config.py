# config.py

"""Bite Club settings.

Defaults live on :class:`Settings`, deployment values in ``config.json`` next
to this module, and any matching environment variable (upper-cased field
name) wins over both.
"""

from __future__ import annotations

import json
import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE = Path(__file__).with_name("config.json")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    database_url: str = "sqlite+aiosqlite:///./biteclub_dev.db"
    redis_url: str = "redis://localhost:6379/0"
    # package sizes a student may buy through the payment provider
    credit_purchase_amounts: list[Decimal] = [
        Decimal("10"),
        Decimal("25"),
        Decimal("50"),
        Decimal("100"),
    ]
    recent_transactions_limit: int = 20
    log_level: str = "INFO"
    error_dsn: str | None = None
    idempotency_ttl_secs: int = 86400

    @field_validator("credit_purchase_amounts", mode="before")
    @classmethod
    def _decode_amounts(cls, value):
        # raw env overrides arrive as a JSON array string
        if isinstance(value, str):
            return json.loads(value)
        return value


def _read_config_file(path: Path = CONFIG_FILE) -> dict:
    if not path.exists():
        return {}
    return json.loads(path.read_text())


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, reading ``config.json`` once."""

    values = _read_config_file()
    for name in Settings.model_fields:
        env_value = os.environ.get(name.upper())
        if env_value is not None:
            values[name] = env_value
    return Settings(**values)
