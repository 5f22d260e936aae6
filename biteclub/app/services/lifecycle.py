"""Restaurant-driven order lifecycle.

Every action is resolved through :data:`~biteclub.app.domain.TRANSITIONS`;
anything not in the table raises :class:`InvalidTransition` before a write.
The status update is guarded on the status that was read, so two requests
racing on the same order cannot both succeed (and cannot refund twice).
"""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import (
    ActingContext,
    ConcurrencyConflict,
    InvalidTransition,
    LedgerEffect,
    OrderAction,
    next_transition,
)
from ..domain.order_status import TIMESTAMP_FIELDS
from ..models import CreditTransactionType, Order
from ..repos_sqlalchemy import ledger_repo_sql, orders_repo_sql
from ..routes_metrics import credits_added_total, order_transitions_total
from .uow import atomic

logger = logging.getLogger("biteclub.lifecycle")

DEFAULT_REJECT_REASON = "Order rejected by restaurant"
DEFAULT_CANCEL_REASON = "Order cancelled by restaurant"


async def transition(
    session: AsyncSession,
    ctx: ActingContext,
    order_id: str,
    action: OrderAction,
    reason: str | None = None,
) -> Order:
    """Apply ``action`` to ``order_id`` and return the updated order."""

    order = await orders_repo_sql.get_order(session, order_id)
    ctx.require_restaurant(order.restaurant_id)
    current = order.status
    step = next_transition(current, action)
    if step is None:
        raise InvalidTransition(current.value, action.value)

    values: dict = {}
    stamp = TIMESTAMP_FIELDS.get(step.target)
    if stamp:
        values[stamp] = func.now()
    if step.effect is LedgerEffect.REFUND:
        default = (
            DEFAULT_REJECT_REASON if action is OrderAction.REJECT else DEFAULT_CANCEL_REASON
        )
        values["refund_reason"] = reason or default

    async with atomic(session):
        moved = await orders_repo_sql.update_status(
            session, order.id, current, step.target, **values
        )
        if not moved:
            raise ConcurrencyConflict()
        if step.effect is LedgerEffect.REFUND:
            await ledger_repo_sql.post_entry(
                session,
                order.student_id,
                order.final_amount,
                CreditTransactionType.REFUND,
                description=values["refund_reason"],
                order_id=order.id,
            )

    await session.refresh(order)
    order_transitions_total.labels(action=action.value).inc()
    if step.effect is LedgerEffect.REFUND:
        credits_added_total.labels(type=CreditTransactionType.REFUND.value).inc()
    logger.info(
        "order %s -> %s via %s",
        current.value,
        step.target.value,
        action.value,
        extra={
            "actor": ctx.describe(),
            "restaurant": order.restaurant_id,
            "order": order.id,
        },
    )
    return order


async def accept_order(session: AsyncSession, ctx: ActingContext, order_id: str) -> Order:
    return await transition(session, ctx, order_id, OrderAction.ACCEPT)


async def reject_order(
    session: AsyncSession, ctx: ActingContext, order_id: str, reason: str | None = None
) -> Order:
    """Decline a PENDING order and refund its final amount."""

    return await transition(session, ctx, order_id, OrderAction.REJECT, reason)


async def cancel_order(
    session: AsyncSession, ctx: ActingContext, order_id: str, reason: str | None = None
) -> Order:
    """Cancel a CONFIRMED order and refund its final amount."""

    return await transition(session, ctx, order_id, OrderAction.CANCEL, reason)


async def advance_order(session: AsyncSession, ctx: ActingContext, order_id: str) -> Order:
    return await transition(session, ctx, order_id, OrderAction.ADVANCE)


async def closeout_order(session: AsyncSession, ctx: ActingContext, order_id: str) -> Order:
    """Mark fulfillment complete; the order now counts toward promotions."""

    return await transition(session, ctx, order_id, OrderAction.CLOSEOUT)
