"""Error sink backed by Sentry."""

from __future__ import annotations

import logging
from typing import Any, Optional

import sentry_sdk

from .logging import _redact_pii

logger = logging.getLogger("biteclub.errors")


def _scrub(event: dict, hint: dict) -> dict:
    # Strip emails and card numbers from exception messages before upload.
    for exc in event.get("exception", {}).get("values", []):
        if isinstance(exc.get("value"), str):
            exc["value"] = _redact_pii(exc["value"])
    return event


def init_sentry(dsn: Optional[str] = None, env: Optional[str] = None) -> None:
    """Initialize Sentry when a DSN is configured."""

    if not dsn:
        logger.info("ERROR_DSN not set; error sink disabled")
        return
    sentry_sdk.init(dsn=dsn, environment=env, send_default_pii=False, before_send=_scrub)


def capture_exception(exc: BaseException, **tags: Any) -> None:
    """Report ``exc`` with optional tags (order, student) or log it locally."""

    if sentry_sdk.get_client().is_active():
        with sentry_sdk.new_scope() as scope:
            for key, value in tags.items():
                if value is not None:
                    scope.set_tag(key, value)
            sentry_sdk.capture_exception(exc)
    else:
        logger.error("Unhandled exception", exc_info=exc, extra=tags)
