"""Promotion preview and restaurant promotion settings."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import ActingContext
from ..models import PromotionConfig
from ..money import fmt, to_money
from ..pricing import PromotionResult, evaluate, validate_settings
from ..repos_sqlalchemy import orders_repo_sql, restaurants_repo_sql
from .uow import atomic

DEFAULT_LOYALTY_THRESHOLD = Decimal("50.00")
DEFAULT_LOYALTY_REWARD = Decimal("5.00")


def settings_payload(config: PromotionConfig | None) -> dict:
    if config is None:
        return {
            "first_time_enabled": False,
            "first_time_percent": "0.00",
            "loyalty_enabled": False,
            "loyalty_spend_threshold": None,
            "loyalty_reward_amount": None,
        }
    return {
        "first_time_enabled": config.first_time_enabled,
        "first_time_percent": fmt(config.first_time_percent),
        "loyalty_enabled": config.loyalty_enabled,
        "loyalty_spend_threshold": fmt(config.loyalty_spend_threshold),
        "loyalty_reward_amount": fmt(config.loyalty_reward_amount),
    }


def _amount_or(value: object, field: str, fallback: Decimal) -> Decimal:
    """Coerce ``value``, keeping ``fallback`` when the caller left it out."""

    if value is None:
        return Decimal(fallback)
    return to_money(value, field)


async def evaluate_promotions(
    session: AsyncSession,
    ctx: ActingContext,
    student_id: str,
    restaurant_id: str,
    subtotal: object,
) -> PromotionResult:
    """Preview what checkout would apply for ``subtotal``. Writes nothing."""

    ctx.require_student(student_id)
    await restaurants_repo_sql.get_restaurant(session, restaurant_id)
    config = await restaurants_repo_sql.get_promotion_config(session, restaurant_id)
    history = await orders_repo_sql.load_history(session, student_id, restaurant_id)
    return evaluate(config, history, subtotal)


async def get_promotion_settings(
    session: AsyncSession, ctx: ActingContext, restaurant_id: str
) -> PromotionConfig | None:
    ctx.require_restaurant(restaurant_id)
    await restaurants_repo_sql.get_restaurant(session, restaurant_id)
    return await restaurants_repo_sql.get_promotion_config(session, restaurant_id)


async def update_promotion_settings(
    session: AsyncSession,
    ctx: ActingContext,
    restaurant_id: str,
    *,
    first_time_enabled: bool,
    first_time_percent: object,
    loyalty_enabled: bool,
    loyalty_spend_threshold: object,
    loyalty_reward_amount: object,
) -> PromotionConfig:
    ctx.require_restaurant(restaurant_id)
    percent = to_money(first_time_percent, "first_time_percent")
    existing = await restaurants_repo_sql.get_promotion_config(session, restaurant_id)
    threshold = _amount_or(
        loyalty_spend_threshold,
        "loyalty_spend_threshold",
        existing.loyalty_spend_threshold if existing else DEFAULT_LOYALTY_THRESHOLD,
    )
    reward = _amount_or(
        loyalty_reward_amount,
        "loyalty_reward_amount",
        existing.loyalty_reward_amount if existing else DEFAULT_LOYALTY_REWARD,
    )
    validate_settings(
        first_time_percent=percent,
        loyalty_spend_threshold=threshold,
        loyalty_reward_amount=reward,
        loyalty_enabled=loyalty_enabled,
    )
    async with atomic(session):
        await restaurants_repo_sql.get_restaurant(session, restaurant_id)
        config = await restaurants_repo_sql.upsert_promotion_config(
            session,
            restaurant_id,
            first_time_enabled=first_time_enabled,
            first_time_percent=Decimal(percent),
            loyalty_enabled=loyalty_enabled,
            loyalty_spend_threshold=threshold,
            loyalty_reward_amount=reward,
        )
    return config
