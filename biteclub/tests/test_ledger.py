"""Ledger arithmetic stays on the cent, even on SQLite's REAL storage."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from biteclub.app.domain import ValidationError
from biteclub.app.models import CreditTransaction, CreditTransactionType
from biteclub.app.pricing import CartLine
from biteclub.app.repos_sqlalchemy import ledger_repo_sql
from biteclub.app.services import checkout as checkout_service
from biteclub.app.services import credits

from biteclub.tests.conftest_world import seed


@pytest.mark.anyio
async def test_fractional_credits_can_be_spent_exactly(db):
    async with db() as session:
        world = await seed(session, balance="0.70")
        await ledger_repo_sql.post_entry(
            session, world.student_id, Decimal("0.10"), CreditTransactionType.ADMIN_ADD
        )
        await session.commit()
        assert await ledger_repo_sql.current_balance(session, world.student_id) == Decimal(
            "0.80"
        )

        await ledger_repo_sql.post_entry(
            session, world.student_id, Decimal("-0.80"), CreditTransactionType.SPEND
        )
        await session.commit()
        assert await ledger_repo_sql.current_balance(session, world.student_id) == Decimal(
            "0.00"
        )
        assert await ledger_repo_sql.ledger_sum(session, world.student_id) == Decimal(
            "0.00"
        )


@pytest.mark.anyio
async def test_checkout_for_exactly_the_balance_succeeds(db):
    async with db() as session:
        world = await seed(session, balance="4.70")
        for _ in range(3):
            await credits.admin_add_credits(session, world.admin, world.student_id, "0.10")

        receipt = await checkout_service.checkout(
            session,
            world.student,
            world.student_id,
            world.restaurant_id,
            [CartLine(world.wrap_id, 1)],
        )
        assert receipt.order.final_amount == Decimal("5.00")
        assert receipt.balance == Decimal("0.00")
        assert (await credits.reconcile(session, world.student_id)).ok


@pytest.mark.anyio
async def test_credit_past_the_balance_limit_is_refused(session, world):
    before = (
        await session.execute(select(func.count()).select_from(CreditTransaction))
    ).scalar_one()
    with pytest.raises(ValidationError) as exc:
        await credits.admin_add_credits(
            session, world.admin, world.student_id, "99999999.99"
        )
    assert exc.value.code == "BALANCE_LIMIT"
    after = (
        await session.execute(select(func.count()).select_from(CreditTransaction))
    ).scalar_one()
    assert after == before
    assert await ledger_repo_sql.current_balance(session, world.student_id) == Decimal(
        "40.00"
    )
