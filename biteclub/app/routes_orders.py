"""Student checkout and restaurant order lifecycle routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .deps.context import get_acting_context
from .domain import ActingContext
from .pricing import CartLine
from .pricing.cart import MAX_QUANTITY
from .services import checkout as checkout_service
from .services import lifecycle, orders, promotions
from .services.orders import order_payload
from .utils.responses import ok

router = APIRouter(prefix="/api/orders")


class ModifierSelection(BaseModel):
    group_id: str
    modifier_id: str


class CartItemIn(BaseModel):
    menu_item_id: str
    quantity: int = Field(ge=1, le=MAX_QUANTITY)
    selected_modifiers: List[ModifierSelection] = Field(default_factory=list)
    special_instructions: str | None = None


class CheckoutIn(BaseModel):
    restaurant_id: str
    items: List[CartItemIn]
    special_instructions: str | None = None


class PromotionCheckIn(BaseModel):
    restaurant_id: str
    # strings keep cents exact; floats are refused downstream
    subtotal: str | int


class ReasonIn(BaseModel):
    reason: str | None = None


@router.post("")
async def place_order(
    payload: CheckoutIn,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Create a PENDING order and debit the student's credits."""

    lines = [
        CartLine(
            menu_item_id=item.menu_item_id,
            quantity=item.quantity,
            selected_modifiers=[m.model_dump() for m in item.selected_modifiers],
            special_instructions=item.special_instructions,
        )
        for item in payload.items
    ]
    receipt = await checkout_service.checkout(
        session,
        ctx,
        ctx.subject_id,
        payload.restaurant_id,
        lines,
        payload.special_instructions,
    )
    return ok(checkout_service.receipt_payload(receipt))


@router.post("/check-promotions")
async def check_promotions(
    payload: PromotionCheckIn,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    result = await promotions.evaluate_promotions(
        session, ctx, ctx.subject_id, payload.restaurant_id, payload.subtotal
    )
    return ok(result.as_dict())


@router.get("/mine")
async def my_orders(
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    rows = await orders.list_student_orders(session, ctx, ctx.subject_id)
    return ok([order_payload(o) for o in rows])


@router.post("/{order_id}/accept")
async def accept(
    order_id: str,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    order = await lifecycle.accept_order(session, ctx, order_id)
    return ok(order_payload(order))


@router.post("/{order_id}/reject")
async def reject(
    order_id: str,
    payload: ReasonIn | None = None,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Decline a pending order; the student is refunded in full."""

    reason = payload.reason if payload else None
    order = await lifecycle.reject_order(session, ctx, order_id, reason)
    return ok(order_payload(order))


@router.post("/{order_id}/cancel")
async def cancel(
    order_id: str,
    payload: ReasonIn | None = None,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    reason = payload.reason if payload else None
    order = await lifecycle.cancel_order(session, ctx, order_id, reason)
    return ok(order_payload(order))


@router.post("/{order_id}/advance")
async def advance(
    order_id: str,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    order = await lifecycle.advance_order(session, ctx, order_id)
    return ok(order_payload(order))


@router.post("/{order_id}/closeout")
async def closeout(
    order_id: str,
    ctx: ActingContext = Depends(get_acting_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    order = await lifecycle.closeout_order(session, ctx, order_id)
    return ok(order_payload(order))


__all__ = ["router"]
