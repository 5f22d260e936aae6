"""SQLAlchemy-backed repository implementations.

Repositories only read and write rows inside the caller's session; services
decide when to commit or roll back.
"""

from . import ledger_repo_sql, orders_repo_sql, restaurants_repo_sql

__all__ = ["ledger_repo_sql", "orders_repo_sql", "restaurants_repo_sql"]
