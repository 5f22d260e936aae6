"""Credit ledger operations outside checkout.

Covers balance lookups, admin adjustments, recording completed credit
purchases and reconciliation of the denormalized balance against the ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings

from ..domain import ActingContext, ValidationError
from ..models import CreditTransaction, CreditTransactionType
from ..money import ZERO, fmt, quantize, to_money
from ..repos_sqlalchemy import ledger_repo_sql
from ..routes_metrics import credits_added_total
from .uow import atomic

logger = logging.getLogger("biteclub.credits")


@dataclass
class Balance:
    balance: Decimal
    transactions: List[CreditTransaction]


@dataclass
class Reconciliation:
    student_id: str
    balance: Decimal
    ledger_total: Decimal

    @property
    def ok(self) -> bool:
        return self.balance == self.ledger_total


def transaction_payload(entry: CreditTransaction) -> dict:
    return {
        "id": entry.id,
        "amount": fmt(entry.amount),
        "type": entry.type.value,
        "description": entry.description,
        "order_id": entry.order_id,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


async def get_balance(
    session: AsyncSession,
    ctx: ActingContext,
    student_id: str,
    limit: int | None = None,
) -> Balance:
    """Return the balance and newest ledger entries for ``student_id``."""

    ctx.require_student(student_id)
    limit = limit or get_settings().recent_transactions_limit
    balance = await ledger_repo_sql.current_balance(session, student_id)
    entries = await ledger_repo_sql.recent_transactions(session, student_id, limit)
    return Balance(balance=balance, transactions=entries)


async def admin_add_credits(
    session: AsyncSession,
    ctx: ActingContext,
    student_id: str,
    amount: object,
    reason: str | None = None,
) -> CreditTransaction:
    """Credit ``amount`` to a student as an admin adjustment."""

    ctx.require_admin()
    value = to_money(amount)
    if value <= ZERO:
        raise ValidationError("INVALID_AMOUNT", "amount must be positive")
    async with atomic(session):
        entry = await ledger_repo_sql.post_entry(
            session,
            student_id,
            value,
            CreditTransactionType.ADMIN_ADD,
            description=reason or "Manually added by admin",
        )
    await session.refresh(entry)
    credits_added_total.labels(type=CreditTransactionType.ADMIN_ADD.value).inc()
    logger.info(
        "admin credit %s", value, extra={"actor": ctx.describe(), "student": student_id}
    )
    return entry


async def record_purchase(
    session: AsyncSession,
    ctx: ActingContext,
    student_id: str,
    amount: object,
    payment_ref: str,
) -> CreditTransaction:
    """Credit a completed credit purchase identified by ``payment_ref``.

    The payment itself is confirmed by the payment provider before this is
    called. Replaying the same ``payment_ref`` returns the original entry
    without crediting again.
    """

    ctx.require_student(student_id)
    value = to_money(amount)
    allowed = [quantize(Decimal(a)) for a in get_settings().credit_purchase_amounts]
    if value not in allowed:
        raise ValidationError(
            "INVALID_PURCHASE_AMOUNT",
            "Invalid amount",
            hint="Choose one of " + ", ".join(str(a) for a in allowed),
        )
    if not payment_ref:
        raise ValidationError("MISSING_PAYMENT_REF", "payment_ref is required")

    existing = await ledger_repo_sql.find_by_payment_ref(session, payment_ref)
    if existing is not None:
        if existing.student_id != student_id:
            raise ValidationError(
                "PAYMENT_REF_IN_USE", "payment_ref belongs to another student"
            )
        return existing

    async with atomic(session):
        entry = await ledger_repo_sql.post_entry(
            session,
            student_id,
            value,
            CreditTransactionType.PURCHASE,
            description="Credit purchase",
            payment_ref=payment_ref,
        )
    await session.refresh(entry)
    credits_added_total.labels(type=CreditTransactionType.PURCHASE.value).inc()
    logger.info("credit purchase %s", value, extra={"student": student_id})
    return entry


async def reconcile(session: AsyncSession, student_id: str) -> Reconciliation:
    """Compare the stored balance with the sum of the student's ledger."""

    balance = await ledger_repo_sql.current_balance(session, student_id)
    total = await ledger_repo_sql.ledger_sum(session, student_id)
    result = Reconciliation(student_id=student_id, balance=balance, ledger_total=total)
    if not result.ok:
        logger.warning(
            "balance %s does not match ledger %s",
            balance,
            total,
            extra={"student": student_id},
        )
    return result
