# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

checkouts_total = Counter("checkouts_total", "Total successful checkouts")
checkouts_total.inc(0)

checkout_failures_total = Counter(
    "checkout_failures_total", "Checkouts rejected or aborted", ["code"]
)

order_transitions_total = Counter(
    "order_transitions_total", "Order lifecycle transitions applied", ["action"]
)

credits_added_total = Counter(
    "credits_added_total", "Credit ledger entries that added funds", ["type"]
)

idempotency_hits_total = Counter(
    "idempotency_hits_total", "Requests answered from the idempotency cache"
)
idempotency_hits_total.inc(0)

http_errors_total = Counter("http_errors_total", "Total HTTP errors", ["status"])

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics."""

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "router",
    "checkouts_total",
    "checkout_failures_total",
    "order_transitions_total",
    "credits_added_total",
    "idempotency_hits_total",
    "http_errors_total",
]
