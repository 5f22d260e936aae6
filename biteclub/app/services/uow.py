"""Transaction boundary shared by the state-changing services."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import BiteClubError, PersistenceFailure
from ..obs import capture_exception

logger = logging.getLogger("biteclub.db")


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything done inside the block, or roll all of it back.

    Domain errors propagate unchanged. Database errors are reported to the
    error sink and re-raised as :class:`PersistenceFailure`.
    """

    try:
        yield session
        await session.commit()
    except BiteClubError:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        capture_exception(exc)
        raise PersistenceFailure("Transaction aborted") from exc
    except Exception:
        await session.rollback()
        raise
