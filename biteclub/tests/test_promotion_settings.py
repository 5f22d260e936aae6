from decimal import Decimal

import pytest

from biteclub.app.domain import Forbidden, ValidationError
from biteclub.app.services import promotions


@pytest.mark.anyio
async def test_settings_default_to_disabled(session, world):
    config = await promotions.get_promotion_settings(
        session, world.restaurant, world.restaurant_id
    )
    assert config is None
    assert promotions.settings_payload(config)["first_time_enabled"] is False


@pytest.mark.anyio
async def test_update_then_preview(session, world):
    config = await promotions.update_promotion_settings(
        session,
        world.restaurant,
        world.restaurant_id,
        first_time_enabled=True,
        first_time_percent="25",
        loyalty_enabled=True,
        loyalty_spend_threshold="40",
        loyalty_reward_amount="4",
    )
    assert config.first_time_percent == Decimal("25.00")
    payload = promotions.settings_payload(config)
    assert payload["loyalty_spend_threshold"] == "40.00"

    preview = await promotions.evaluate_promotions(
        session, world.student, world.student_id, world.restaurant_id, "12.00"
    )
    assert preview.promotion_applied == "FIRST_TIME"
    assert preview.final_amount == Decimal("9.00")
    assert preview.loyalty_progress.remaining == Decimal("28.00")


@pytest.mark.anyio
async def test_update_keeps_loyalty_amounts_when_omitted(session, world):
    await promotions.update_promotion_settings(
        session,
        world.restaurant,
        world.restaurant_id,
        first_time_enabled=False,
        first_time_percent="0",
        loyalty_enabled=True,
        loyalty_spend_threshold="60",
        loyalty_reward_amount="6",
    )
    config = await promotions.update_promotion_settings(
        session,
        world.restaurant,
        world.restaurant_id,
        first_time_enabled=True,
        first_time_percent="5",
        loyalty_enabled=False,
        loyalty_spend_threshold=None,
        loyalty_reward_amount=None,
    )
    assert config.loyalty_spend_threshold == Decimal("60.00")
    assert config.loyalty_reward_amount == Decimal("6.00")


@pytest.mark.anyio
@pytest.mark.parametrize(
    "overrides",
    [
        {"first_time_percent": "120"},
        {"loyalty_spend_threshold": "-1"},
        {"loyalty_enabled": True, "loyalty_reward_amount": "0"},
        {"first_time_percent": 12.5},
    ],
)
async def test_invalid_settings_are_rejected(session, world, overrides):
    values = dict(
        first_time_enabled=True,
        first_time_percent="10",
        loyalty_enabled=False,
        loyalty_spend_threshold="50",
        loyalty_reward_amount="5",
    )
    values.update(overrides)
    with pytest.raises(ValidationError):
        await promotions.update_promotion_settings(
            session, world.restaurant, world.restaurant_id, **values
        )
    assert (
        await promotions.get_promotion_settings(
            session, world.restaurant, world.restaurant_id
        )
        is None
    )


@pytest.mark.anyio
async def test_students_cannot_change_settings(session, world):
    with pytest.raises(Forbidden):
        await promotions.get_promotion_settings(
            session, world.student, world.restaurant_id
        )
