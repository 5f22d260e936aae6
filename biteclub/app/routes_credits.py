"""Credit balance, purchase recording and admin adjustments."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .deps.context import get_acting_context
from .domain import ActingContext
from .money import fmt
from .services import credits
from .utils.responses import ok

router = APIRouter(prefix="/api/credits")


class PurchaseIn(BaseModel):
    amount: str | int
    payment_ref: str


class AdminAddIn(BaseModel):
    student_id: str
    amount: str | int
    reason: str | None = None


@router.get("/balance")
async def balance(
    limit: int | None = Query(default=None, ge=1, le=200),
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    result = await credits.get_balance(session, ctx, ctx.subject_id, limit)
    return ok(
        {
            "balance": fmt(result.balance),
            "transactions": [credits.transaction_payload(t) for t in result.transactions],
        }
    )


@router.post("/purchase")
async def purchase(
    payload: PurchaseIn,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Record a purchase the payment provider has already confirmed."""

    entry = await credits.record_purchase(
        session, ctx, ctx.subject_id, payload.amount, payload.payment_ref
    )
    current = await credits.get_balance(session, ctx, ctx.subject_id, 1)
    return ok(
        {
            "transaction": credits.transaction_payload(entry),
            "balance": fmt(current.balance),
        }
    )


@router.post("/admin/add")
async def admin_add(
    payload: AdminAddIn,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    entry = await credits.admin_add_credits(
        session, ctx, payload.student_id, payload.amount, payload.reason
    )
    return ok({"transaction": credits.transaction_payload(entry)})


__all__ = ["router"]
