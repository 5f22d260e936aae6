"""SQLAlchemy-backed credit ledger.

Every balance change goes through :func:`post_entry`, which appends a
``CreditTransaction`` and adjusts ``students.credit_balance`` inside the
caller's transaction. Debits use a guarded ``UPDATE`` so the balance can never
go negative even when two requests debit the same student concurrently.
Callers own commit and rollback.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List

from sqlalchemy import Numeric, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import InsufficientCredit, NotFound, ValidationError
from ..models import CreditTransaction, CreditTransactionType, Order, Student
from ..money import MAX_AMOUNT, ZERO, quantize

MONEY = Numeric(10, 2)


def _cents(expr):
    # SQLite keeps NUMERIC as REAL; rounding keeps stored balances on the cent
    return func.round(expr, 2, type_=MONEY)


async def get_student(
    session: AsyncSession, student_id: str, *, for_update: bool = False
) -> Student:
    """Return the student row, locking it when ``for_update`` is set.

    The row lock serializes concurrent checkouts on databases that support
    ``SELECT ... FOR UPDATE``; SQLite ignores it and relies on the guarded
    debit in :func:`post_entry`.
    """

    stmt = select(Student).where(Student.id == student_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt.execution_options(populate_existing=True))
    student = result.scalar_one_or_none()
    if student is None:
        raise NotFound("STUDENT_NOT_FOUND", f"student {student_id!r} not found")
    return student


async def current_balance(session: AsyncSession, student_id: str) -> Decimal:
    result = await session.execute(
        select(Student.credit_balance).where(Student.id == student_id)
    )
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFound("STUDENT_NOT_FOUND", f"student {student_id!r} not found")
    return quantize(Decimal(balance))


async def post_entry(
    session: AsyncSession,
    student_id: str,
    amount: Decimal,
    type_: CreditTransactionType,
    *,
    description: str | None = None,
    order_id: str | None = None,
    payment_ref: str | None = None,
) -> CreditTransaction:
    """Append a ledger entry of ``amount`` and move the balance by the same.

    Negative amounts are debits and only apply when the balance covers them;
    otherwise :class:`InsufficientCredit` is raised and nothing is written.
    Credits that would push the balance past :data:`MAX_AMOUNT` raise a
    ``BALANCE_LIMIT`` :class:`ValidationError`.
    """

    amount = quantize(amount)
    balance = _cents(Student.credit_balance)
    stmt = (
        update(Student)
        .where(Student.id == student_id)
        .values(credit_balance=_cents(Student.credit_balance + amount))
    )
    if amount < ZERO:
        stmt = stmt.where(balance >= -amount)
    else:
        stmt = stmt.where(balance + amount <= MAX_AMOUNT)
    result = await session.execute(
        stmt.execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = await current_balance(session, student_id)
        if amount < ZERO:
            raise InsufficientCredit(balance=current, required=-amount)
        raise ValidationError(
            "BALANCE_LIMIT",
            "Credit would exceed the maximum balance",
            details={"balance": str(current), "max": str(MAX_AMOUNT)},
        )

    entry = CreditTransaction(
        student_id=student_id,
        amount=amount,
        type=type_,
        description=description,
        order_id=order_id,
        payment_ref=payment_ref,
    )
    session.add(entry)
    await session.flush()
    return entry


async def ledger_sum(session: AsyncSession, student_id: str) -> Decimal:
    """Return the sum of all ledger amounts for ``student_id``."""

    result = await session.execute(
        select(func.coalesce(func.sum(CreditTransaction.amount), 0)).where(
            CreditTransaction.student_id == student_id
        )
    )
    return quantize(Decimal(str(result.scalar_one())))


async def recent_transactions(
    session: AsyncSession, student_id: str, limit: int = 20
) -> List[CreditTransaction]:
    result = await session.execute(
        select(CreditTransaction)
        .where(CreditTransaction.student_id == student_id)
        .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
        .limit(limit)
    )
    return list(result.scalars())


async def find_by_payment_ref(
    session: AsyncSession, payment_ref: str
) -> CreditTransaction | None:
    result = await session.execute(
        select(CreditTransaction).where(CreditTransaction.payment_ref == payment_ref)
    )
    return result.scalar_one_or_none()


async def count_loyalty_rewards(
    session: AsyncSession, student_id: str, restaurant_id: str
) -> int:
    """Return how many loyalty rewards ``student_id`` earned at a restaurant."""

    result = await session.execute(
        select(func.count(CreditTransaction.id))
        .join(Order, CreditTransaction.order_id == Order.id)
        .where(
            CreditTransaction.student_id == student_id,
            CreditTransaction.type == CreditTransactionType.LOYALTY_REWARD,
            Order.restaurant_id == restaurant_id,
        )
    )
    return int(result.scalar_one())
