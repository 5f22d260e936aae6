"""Restaurant order queue and promotion settings."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .deps.context import get_acting_context
from .domain import ActingContext, OrderStatus
from .money import fmt
from .services import orders, promotions
from .utils.responses import ok

router = APIRouter(prefix="/api/restaurants")


class PromotionSettingsIn(BaseModel):
    first_time_enabled: bool = False
    first_time_percent: str | int = 0
    loyalty_enabled: bool = False
    loyalty_spend_threshold: str | int | None = None
    loyalty_reward_amount: str | int | None = None


@router.get("/{restaurant_id}/orders")
async def restaurant_orders(
    restaurant_id: str,
    status: OrderStatus | None = None,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    rows = await orders.list_restaurant_orders(session, ctx, restaurant_id, status)
    return ok(
        [
            {
                "id": r.id,
                "student_id": r.student_id,
                "status": r.status,
                "final_amount": fmt(r.final_amount),
            }
            for r in rows
        ]
    )


@router.get("/{restaurant_id}/orders/active-count")
async def restaurant_active_count(
    restaurant_id: str,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    count = await orders.active_order_count(session, ctx, restaurant_id)
    return ok({"count": count})


@router.get("/{restaurant_id}/promotions")
async def get_promotions(
    restaurant_id: str,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    config = await promotions.get_promotion_settings(session, ctx, restaurant_id)
    return ok(promotions.settings_payload(config))


@router.put("/{restaurant_id}/promotions")
async def put_promotions(
    restaurant_id: str,
    payload: PromotionSettingsIn,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Replace the restaurant's promotion settings."""

    config = await promotions.update_promotion_settings(
        session, ctx, restaurant_id, **payload.model_dump()
    )
    return ok(promotions.settings_payload(config))


__all__ = ["router"]
