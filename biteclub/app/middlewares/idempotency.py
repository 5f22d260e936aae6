from __future__ import annotations

import base64
import hashlib
import json

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from config import get_settings

from ..routes_metrics import idempotency_hits_total

IDEMPOTENT_PREFIXES = ("/api/orders", "/api/credits")


def _cache_key(request: Request, key: str) -> str:
    actor = request.headers.get("X-Actor-Id", "")
    subject = request.headers.get("X-On-Behalf-Of", "")
    digest = hashlib.sha256(f"{actor}:{subject}:{key}".encode()).hexdigest()
    return f"idem:{request.url.path}:{digest}"


def _freeze(status: int, body: bytes, headers: dict, media_type) -> str:
    return json.dumps(
        {
            "status": status,
            "body": base64.b64encode(body).decode(),
            "headers": headers,
            "media_type": media_type,
        }
    )


def _thaw(stored) -> Response:
    data = json.loads(stored)
    return Response(
        content=base64.b64decode(data["body"]),
        status_code=data["status"],
        headers=data.get("headers"),
        media_type=data.get("media_type"),
    )


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """Replay the first response for a repeated ``Idempotency-Key``.

    Covers POSTs under the order and credit APIs, so a student retrying
    checkout or a purchase on a flaky network is not charged twice. Keys are
    scoped to the path, the acting user and any ``X-On-Behalf-Of`` subject.
    Server errors are not stored, so a retry after an outage runs again.
    """

    async def dispatch(self, request: Request, call_next):
        key = request.headers.get("Idempotency-Key")
        if (
            not key
            or request.method != "POST"
            or not request.url.path.startswith(IDEMPOTENT_PREFIXES)
        ):
            return await call_next(request)

        redis = request.app.state.redis
        cache_key = _cache_key(request, key)
        stored = await redis.get(cache_key)
        if stored:
            idempotency_hits_total.inc()
            return _thaw(stored)

        response = await call_next(request)
        body = b"".join([chunk async for chunk in response.body_iterator])
        headers = dict(response.headers)
        if response.status_code < 500:
            await redis.set(
                cache_key,
                _freeze(response.status_code, body, headers, response.media_type),
                ex=get_settings().idempotency_ttl_secs,
            )
        return Response(
            content=body,
            status_code=response.status_code,
            headers=headers,
            media_type=response.media_type,
        )
