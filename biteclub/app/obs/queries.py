"""SQL timing for the async engines."""

from __future__ import annotations

import logging
import time

from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger("biteclub.db")

SLOW_QUERY_MS = 200


def _shorten(statement: str, limit: int = 200) -> str:
    sql = " ".join(statement.split())
    return sql if len(sql) <= limit else sql[: limit - 3] + "..."


def add_query_logger(engine: Engine, label: str, slow_ms: int = SLOW_QUERY_MS) -> None:
    """Log statements on ``engine`` slower than ``slow_ms`` milliseconds.

    Bound parameters are never logged since they carry balances and emails.
    At DEBUG level every statement is logged with its duration.
    """

    target = engine.sync_engine if hasattr(engine, "sync_engine") else engine

    @event.listens_for(target, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start", []).append(time.perf_counter())

    @event.listens_for(target, "after_cursor_execute")
    def _finish(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = (time.perf_counter() - conn.info["query_start"].pop()) * 1000
        if elapsed_ms > slow_ms:
            logger.warning(
                "slow query %dms db=%s rows=%s sql=%s",
                int(elapsed_ms),
                label,
                cursor.rowcount,
                _shorten(statement),
            )
        elif logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "query %.1fms db=%s sql=%s", elapsed_ms, label, _shorten(statement)
            )
