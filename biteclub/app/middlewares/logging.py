"""Access log for the API: one line on the way in, one on the way out."""

import json
import logging
import time
import uuid
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..routes_metrics import http_errors_total
from ..utils.responses import err
from .request_id import request_id_ctx, resolve_request_id

# Body and query keys replaced with *** before logging
PII_KEYS = {"email", "payment_ref", "card", "phone"}

logger = logging.getLogger("biteclub.http")


def _mask(obj):
    if isinstance(obj, dict):
        return {k: "***" if k.lower() in PII_KEYS else _mask(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_mask(v) for v in obj]
    return obj


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _buffer_body(request: Request):
    """Read the body once and replay it for the route handler."""

    raw = await request.body()

    async def replay() -> dict:
        return {"type": "http.request", "body": raw, "more_body": False}

    request._receive = replay
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _acting_headers(request: Request) -> dict:
    return {
        "actor": request.headers.get("X-Actor-Id"),
        "role": request.headers.get("X-Actor-Role"),
        "on_behalf_of": request.headers.get("X-On-Behalf-Of"),
    }


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with acting headers, masked payload and latency.

    Unhandled exceptions are reported to the error sink and answered with a
    500 envelope carrying an ``error_id`` that also appears in the log.
    """

    async def dispatch(self, request: Request, call_next):
        token = None
        req_id = getattr(request.state, "request_id", None)
        if req_id is None:
            req_id = resolve_request_id(request.headers.get("X-Request-ID"))
            request.state.request_id = req_id
            token = request_id_ctx.set(req_id)

        body = await _buffer_body(request)
        acting = _acting_headers(request)
        inbound = {"ts": _now(), "req_id": req_id, **acting}
        inbound.update(path=request.url.path, method=request.method)
        if request.query_params:
            inbound["query"] = _mask(dict(request.query_params))
        if body is not None:
            inbound["body"] = _mask(body)
        logger.info(json.dumps(inbound))

        started = time.perf_counter()
        error_id = None
        try:
            response = await call_next(request)
        except Exception as exc:
            from ..obs import capture_exception

            error_id = uuid.uuid4().hex
            capture_exception(exc, error_id=error_id, route=request.url.path)
            payload = err(500, "Internal Server Error")
            payload["error_id"] = error_id
            response = JSONResponse(payload, status_code=500)

        status = response.status_code
        outbound = {
            "ts": _now(),
            "req_id": req_id,
            "actor": acting["actor"],
            "route": request.url.path,
            "status": status,
            "latency_ms": int((time.perf_counter() - started) * 1000),
        }
        if error_id:
            outbound["error_id"] = error_id
        if status >= 400:
            http_errors_total.labels(status=str(status)).inc()
        (logger.error if status >= 500 else logger.info)(json.dumps(outbound))

        response.headers["X-Request-ID"] = req_id
        if token is not None:
            request_id_ctx.reset(token)
        return response
