"""Restaurant, menu and promotion settings lookups."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import NotFound
from ..models import MenuItem, PromotionConfig, Restaurant


async def get_restaurant(session: AsyncSession, restaurant_id: str) -> Restaurant:
    restaurant = await session.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise NotFound(
            "RESTAURANT_NOT_FOUND", f"restaurant {restaurant_id!r} not found"
        )
    return restaurant


async def load_menu_items(
    session: AsyncSession, item_ids: Iterable[str]
) -> Dict[str, MenuItem]:
    """Return menu rows keyed by id for the requested ``item_ids``."""

    ids = list(set(item_ids))
    if not ids:
        return {}
    result = await session.execute(select(MenuItem).where(MenuItem.id.in_(ids)))
    return {item.id: item for item in result.scalars()}


async def get_promotion_config(
    session: AsyncSession, restaurant_id: str
) -> PromotionConfig | None:
    result = await session.execute(
        select(PromotionConfig).where(PromotionConfig.restaurant_id == restaurant_id)
    )
    return result.scalar_one_or_none()


async def upsert_promotion_config(
    session: AsyncSession,
    restaurant_id: str,
    *,
    first_time_enabled: bool,
    first_time_percent: Decimal,
    loyalty_enabled: bool,
    loyalty_spend_threshold: Decimal,
    loyalty_reward_amount: Decimal,
) -> PromotionConfig:
    config = await get_promotion_config(session, restaurant_id)
    if config is None:
        config = PromotionConfig(restaurant_id=restaurant_id)
        session.add(config)
    config.first_time_enabled = first_time_enabled
    config.first_time_percent = first_time_percent
    config.loyalty_enabled = loyalty_enabled
    config.loyalty_spend_threshold = loyalty_spend_threshold
    config.loyalty_reward_amount = loyalty_reward_amount
    await session.flush()
    return config
