"""SQLAlchemy-backed repository helpers for orders.

These helpers implement order persistence without any side effects beyond
database mutations. They operate on ``AsyncSession`` instances and leave
commit/rollback to the calling service. Order items snapshot the menu name and
price so that historical orders survive later menu edits.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import ACTIVE, NotFound, OrderStatus
from ..models import Order, OrderItem, PromotionCost, PromotionType
from ..money import ZERO, quantize
from ..pricing import OrderHistory, PricedCart, PromotionResult
from . import ledger_repo_sql


@dataclass
class OrderSummary:
    """Lightweight representation of an order used by list views."""

    id: str
    student_id: str
    status: str
    final_amount: Decimal


async def load_history(
    session: AsyncSession, student_id: str, restaurant_id: str
) -> OrderHistory:
    """Return ``student_id``'s completed-order history at ``restaurant_id``.

    Only COMPLETED orders count; pending, in-flight and cancelled orders are
    ignored so abandoned carts cannot burn or farm promotions.
    """

    result = await session.execute(
        select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0),
        ).where(
            Order.student_id == student_id,
            Order.restaurant_id == restaurant_id,
            Order.status == OrderStatus.COMPLETED,
        )
    )
    count, spend = result.one()
    rewards = await ledger_repo_sql.count_loyalty_rewards(
        session, student_id, restaurant_id
    )
    return OrderHistory(
        completed_orders=int(count),
        completed_spend=quantize(Decimal(str(spend))),
        loyalty_rewards=rewards,
    )


async def create_order(
    session: AsyncSession,
    student_id: str,
    restaurant_id: str,
    cart: PricedCart,
    promo: PromotionResult,
    special_instructions: str | None = None,
) -> Order:
    """Insert a PENDING order with its items and promotion cost record."""

    promotion = promo.promotion_applied
    order = Order(
        student_id=student_id,
        restaurant_id=restaurant_id,
        total_amount=promo.subtotal,
        discount_amount=promo.discount_amount,
        final_amount=promo.final_amount,
        loyalty_reward_amount=promo.loyalty_reward_earned,
        status=OrderStatus.PENDING,
        promotion_applied=PromotionType(promotion) if promotion else None,
        special_instructions=special_instructions,
        items=[
            OrderItem(
                menu_item_id=line.menu_item_id,
                name_snapshot=line.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                modifiers_selected=line.modifiers,
                total_price=line.total_price,
                special_instructions=line.special_instructions,
            )
            for line in cart.lines
        ],
    )
    session.add(order)
    await session.flush()  # obtain order.id

    if promo.discount_amount > ZERO:
        session.add(
            PromotionCost(
                order_id=order.id,
                restaurant_id=restaurant_id,
                promotion_type=PromotionType(promotion),
                original_total=promo.subtotal,
                discount_amount=promo.discount_amount,
            )
        )
        await session.flush()
    return order


async def get_order(session: AsyncSession, order_id: str) -> Order:
    order = await session.get(Order, order_id)
    if order is None:
        raise NotFound("ORDER_NOT_FOUND", f"order {order_id!r} not found")
    return order


async def update_status(
    session: AsyncSession,
    order_id: str,
    expected: OrderStatus,
    new_status: OrderStatus,
    **values,
) -> bool:
    """Move ``order_id`` from ``expected`` to ``new_status``.

    Returns ``False`` when the row no longer has the ``expected`` status, i.e.
    another request changed it first.
    """

    result = await session.execute(
        update(Order)
        .where(Order.id == order_id, Order.status == expected)
        .values(status=new_status, updated_at=func.now(), **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def list_for_student(session: AsyncSession, student_id: str) -> List[Order]:
    result = await session.execute(
        select(Order)
        .where(Order.student_id == student_id)
        .order_by(Order.created_at.desc())
    )
    return list(result.scalars())


async def list_for_restaurant(
    session: AsyncSession, restaurant_id: str, status: OrderStatus | None = None
) -> List[OrderSummary]:
    stmt = select(Order.id, Order.student_id, Order.status, Order.final_amount).where(
        Order.restaurant_id == restaurant_id
    )
    if status is not None:
        stmt = stmt.where(Order.status == status)
    result = await session.execute(stmt.order_by(Order.created_at.desc()))
    return [
        OrderSummary(
            id=row.id,
            student_id=row.student_id,
            status=row.status.value,
            final_amount=quantize(Decimal(row.final_amount)),
        )
        for row in result
    ]


async def active_count(session: AsyncSession, restaurant_id: str) -> int:
    """Count orders that still need restaurant attention."""

    result = await session.execute(
        select(func.count(Order.id)).where(
            Order.restaurant_id == restaurant_id, Order.status.in_(ACTIVE)
        )
    )
    return int(result.scalar_one())
