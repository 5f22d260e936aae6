"""JSON log lines for the API process."""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from ..middlewares.request_id import request_id_ctx

# (pattern, replacement) pairs applied to every rendered message
REDACTIONS = [
    (re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+", re.I), "***"),
    (re.compile(r"\b(?:\d[ -]?){13,16}\b"), "***"),
    (re.compile(r"\b(pi|ch|cs)_[A-Za-z0-9]{8,}\b"), r"\1_***"),
]

# Record attributes copied into the JSON object when a caller passes them
# through ``extra=``.
CONTEXT_FIELDS = ("actor", "student", "restaurant", "order", "route", "status")

QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def _redact_pii(text: str) -> str:
    for pattern, replacement in REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.req_id = request_id_ctx.get(None)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; empty context fields are left out."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "req_id": getattr(record, "req_id", None),
        }
        for field in CONTEXT_FIELDS:
            data[field] = getattr(record, field, None)
        data["msg"] = _redact_pii(record.getMessage())
        if record.exc_info:
            data["exc"] = _redact_pii(self.formatException(record.exc_info))
        return json.dumps({k: v for k, v in data.items() if v is not None})


def configure_logging(level: int | str = logging.INFO) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
