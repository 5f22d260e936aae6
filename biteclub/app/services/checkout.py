"""Order checkout.

Turns a cart into a PENDING order and its ledger entries in one transaction:

1. re-price the cart from canonical menu prices,
2. evaluate promotions against the student's completed-order history,
3. check the balance covers the final amount,
4. insert the order, its items and any promotion cost,
5. debit the final amount (SPEND),
6. credit a loyalty reward when one was earned (LOYALTY_REWARD).

Either all of it is committed or none of it is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import ActingContext, BiteClubError, InsufficientCredit, ValidationError
from ..models import CreditTransactionType, Order
from ..money import ZERO, quantize
from ..pricing import CartLine, PromotionResult, evaluate, price_cart
from ..repos_sqlalchemy import ledger_repo_sql, orders_repo_sql, restaurants_repo_sql
from ..routes_metrics import checkout_failures_total, checkouts_total, credits_added_total
from .orders import order_payload
from .uow import atomic

logger = logging.getLogger("biteclub.checkout")


@dataclass
class CheckoutReceipt:
    """Created order plus the promotion outcome and resulting balance."""

    order: Order
    promotion: PromotionResult
    balance: Decimal


async def checkout(
    session: AsyncSession,
    ctx: ActingContext,
    student_id: str,
    restaurant_id: str,
    cart_items: Iterable[CartLine],
    special_instructions: str | None = None,
) -> CheckoutReceipt:
    """Place an order for ``student_id`` at ``restaurant_id``.

    Raises :class:`ValidationError` for a bad cart, :class:`InsufficientCredit`
    when the balance does not cover the final amount and
    :class:`PersistenceFailure` when the database aborts. No partial state is
    left behind in any of these cases.
    """

    ctx.require_student(student_id)
    try:
        async with atomic(session):
            order, promo = await _place(
                session,
                student_id,
                restaurant_id,
                list(cart_items),
                special_instructions,
            )
    except BiteClubError as exc:
        checkout_failures_total.labels(code=exc.code).inc()
        logger.info(
            "checkout rejected code=%s",
            exc.code,
            extra={"student": student_id, "restaurant": restaurant_id},
        )
        raise

    await session.refresh(order)
    balance = await ledger_repo_sql.current_balance(session, student_id)
    checkouts_total.inc()
    if promo.loyalty_reward_earned > ZERO:
        credits_added_total.labels(type=CreditTransactionType.LOYALTY_REWARD.value).inc()
    logger.info(
        "order placed total=%s discount=%s final=%s promotion=%s",
        promo.subtotal,
        promo.discount_amount,
        promo.final_amount,
        promo.promotion_applied,
        extra={
            "actor": ctx.describe(),
            "student": student_id,
            "restaurant": restaurant_id,
            "order": order.id,
        },
    )
    return CheckoutReceipt(order=order, promotion=promo, balance=balance)


async def _place(
    session: AsyncSession,
    student_id: str,
    restaurant_id: str,
    lines: list[CartLine],
    special_instructions: str | None,
) -> tuple[Order, PromotionResult]:
    restaurant = await restaurants_repo_sql.get_restaurant(session, restaurant_id)
    if not restaurant.active:
        raise ValidationError(
            "RESTAURANT_INACTIVE", f"{restaurant.name} is not taking orders"
        )
    student = await ledger_repo_sql.get_student(session, student_id, for_update=True)
    if not student.active:
        raise ValidationError("STUDENT_INACTIVE", "Student account is deactivated")

    menu = await restaurants_repo_sql.load_menu_items(
        session, (line.menu_item_id for line in lines)
    )
    cart = price_cart(restaurant_id, lines, menu)

    config = await restaurants_repo_sql.get_promotion_config(session, restaurant_id)
    history = await orders_repo_sql.load_history(session, student_id, restaurant_id)
    promo = evaluate(config, history, cart.subtotal)

    balance = quantize(Decimal(student.credit_balance))
    if balance < promo.final_amount:
        raise InsufficientCredit(balance=balance, required=promo.final_amount)

    order = await orders_repo_sql.create_order(
        session, student_id, restaurant_id, cart, promo, special_instructions
    )
    await ledger_repo_sql.post_entry(
        session,
        student_id,
        -promo.final_amount,
        CreditTransactionType.SPEND,
        description=f"Order from {restaurant.name}",
        order_id=order.id,
    )
    if promo.loyalty_reward_earned > ZERO:
        await ledger_repo_sql.post_entry(
            session,
            student_id,
            promo.loyalty_reward_earned,
            CreditTransactionType.LOYALTY_REWARD,
            description=f"Loyalty reward from {restaurant.name}",
            order_id=order.id,
        )
    return order, promo


def receipt_payload(receipt: CheckoutReceipt) -> dict:
    """Serialize a receipt for API responses."""

    return {
        "order": order_payload(receipt.order),
        "promotions": receipt.promotion.as_dict(),
        "balance": str(receipt.balance),
    }
