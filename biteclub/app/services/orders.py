"""Order queries and serialization."""

from __future__ import annotations

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import ActingContext, OrderStatus
from ..models import Order
from ..money import fmt
from ..repos_sqlalchemy import orders_repo_sql, restaurants_repo_sql


def _ts(value) -> str | None:
    return value.isoformat() if value is not None else None


def order_payload(order: Order) -> dict:
    """Render ``order`` and its items as JSON-safe primitives."""

    return {
        "id": order.id,
        "student_id": order.student_id,
        "restaurant_id": order.restaurant_id,
        "status": order.status.value,
        "total_amount": fmt(order.total_amount),
        "discount_amount": fmt(order.discount_amount),
        "final_amount": fmt(order.final_amount),
        "loyalty_reward_amount": fmt(order.loyalty_reward_amount),
        "promotion_applied": (
            order.promotion_applied.value if order.promotion_applied else None
        ),
        "special_instructions": order.special_instructions,
        "refund_reason": order.refund_reason,
        "created_at": _ts(order.created_at),
        "accepted_at": _ts(order.accepted_at),
        "ready_at": _ts(order.ready_at),
        "completed_at": _ts(order.completed_at),
        "cancelled_at": _ts(order.cancelled_at),
        "items": [
            {
                "menu_item_id": item.menu_item_id,
                "name": item.name_snapshot,
                "quantity": item.quantity,
                "unit_price": fmt(item.unit_price),
                "modifiers": item.modifiers_selected,
                "total_price": fmt(item.total_price),
                "special_instructions": item.special_instructions,
            }
            for item in order.items
        ],
    }


async def list_student_orders(
    session: AsyncSession, ctx: ActingContext, student_id: str
) -> List[Order]:
    ctx.require_student(student_id)
    return await orders_repo_sql.list_for_student(session, student_id)


async def list_restaurant_orders(
    session: AsyncSession,
    ctx: ActingContext,
    restaurant_id: str,
    status: OrderStatus | None = None,
) -> List[orders_repo_sql.OrderSummary]:
    ctx.require_restaurant(restaurant_id)
    await restaurants_repo_sql.get_restaurant(session, restaurant_id)
    return await orders_repo_sql.list_for_restaurant(session, restaurant_id, status)


async def active_order_count(
    session: AsyncSession, ctx: ActingContext, restaurant_id: str
) -> int:
    ctx.require_restaurant(restaurant_id)
    await restaurants_repo_sql.get_restaurant(session, restaurant_id)
    return await orders_repo_sql.active_count(session, restaurant_id)
