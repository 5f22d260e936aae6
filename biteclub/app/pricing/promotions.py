"""Promotions evaluator for first-time discounts and loyalty rewards.

:func:`evaluate` is a pure function: it reads a restaurant's promotion
settings, the student's completed-order history at that restaurant and the
candidate subtotal, and returns what the order would get. It never touches
the database; checkout persists the outcome.

At most one promotion fires per order. The outcome is carried by a tagged
variant (:class:`NoPromotion`, :class:`FirstTimeDiscount`,
:class:`LoyaltyReward`) so that "discount and reward together" cannot be
represented.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal, Protocol, Union

from ..domain.errors import ValidationError
from ..money import ZERO, percent_of, quantize, to_money

FIRST_TIME = "FIRST_TIME"
LOYALTY_REWARD = "LOYALTY_REWARD"


class PromotionSettings(Protocol):
    """Attributes read from a restaurant's promotion configuration."""

    first_time_enabled: bool
    first_time_percent: Decimal
    loyalty_enabled: bool
    loyalty_spend_threshold: Decimal
    loyalty_reward_amount: Decimal


@dataclass(frozen=True)
class OrderHistory:
    """A student's history at one restaurant.

    ``completed_spend`` sums the pre-discount ``total_amount`` of COMPLETED
    orders. ``loyalty_rewards`` counts rewards already granted there.
    """

    completed_orders: int = 0
    completed_spend: Decimal = ZERO
    loyalty_rewards: int = 0


@dataclass(frozen=True)
class LoyaltyProgress:
    """Display-only loyalty status after the candidate order."""

    current: Decimal
    threshold: Decimal
    remaining: Decimal
    reward_amount: Decimal


@dataclass(frozen=True)
class NoPromotion:
    kind: Literal["none"] = "none"


@dataclass(frozen=True)
class FirstTimeDiscount:
    percent: Decimal
    discount: Decimal
    kind: Literal["first_time"] = "first_time"


@dataclass(frozen=True)
class LoyaltyReward:
    reward: Decimal
    kind: Literal["loyalty"] = "loyalty"


Promotion = Union[NoPromotion, FirstTimeDiscount, LoyaltyReward]


@dataclass(frozen=True)
class PromotionResult:
    subtotal: Decimal
    promotion: Promotion = field(default_factory=NoPromotion)
    loyalty_progress: LoyaltyProgress | None = None

    @property
    def discount_amount(self) -> Decimal:
        if isinstance(self.promotion, FirstTimeDiscount):
            return self.promotion.discount
        return ZERO

    @property
    def final_amount(self) -> Decimal:
        return quantize(self.subtotal - self.discount_amount)

    @property
    def promotion_applied(self) -> str | None:
        if isinstance(self.promotion, FirstTimeDiscount):
            return FIRST_TIME
        if isinstance(self.promotion, LoyaltyReward):
            return LOYALTY_REWARD
        return None

    @property
    def loyalty_reward_earned(self) -> Decimal:
        if isinstance(self.promotion, LoyaltyReward):
            return self.promotion.reward
        return ZERO

    def as_dict(self) -> dict:
        """Serialize for API responses."""

        progress = None
        if self.loyalty_progress is not None:
            p = self.loyalty_progress
            progress = {
                "current": str(p.current),
                "threshold": str(p.threshold),
                "remaining": str(p.remaining),
                "reward_amount": str(p.reward_amount),
            }
        return {
            "subtotal": str(self.subtotal),
            "discount_amount": str(self.discount_amount),
            "final_amount": str(self.final_amount),
            "promotion_applied": self.promotion_applied,
            "loyalty_reward_earned": str(self.loyalty_reward_earned),
            "loyalty_progress": progress,
        }


def _loyalty_progress_before(
    settings: PromotionSettings, history: OrderHistory
) -> Decimal:
    # Each granted reward consumes one threshold; the remainder carries over.
    threshold = Decimal(settings.loyalty_spend_threshold)
    consumed = threshold * history.loyalty_rewards
    return max(ZERO, quantize(Decimal(history.completed_spend) - consumed))


def evaluate(
    settings: PromotionSettings | None,
    history: OrderHistory,
    subtotal: object,
) -> PromotionResult:
    """Return the promotion outcome for a candidate order.

    Parameters
    ----------
    settings:
        The restaurant's promotion configuration or ``None`` when the
        restaurant never configured promotions.
    history:
        The student's completed-order history at the restaurant.
    subtotal:
        Server-computed pre-discount subtotal. Missing or negative values
        raise :class:`~biteclub.app.domain.errors.ValidationError`.

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> cfg = SimpleNamespace(first_time_enabled=True, first_time_percent=Decimal("20"),
    ...     loyalty_enabled=False, loyalty_spend_threshold=Decimal("50"),
    ...     loyalty_reward_amount=Decimal("5"))
    >>> r = evaluate(cfg, OrderHistory(), "20.00")
    >>> (r.discount_amount, r.final_amount, r.promotion_applied)
    (Decimal('4.00'), Decimal('16.00'), 'FIRST_TIME')
    """

    amount = to_money(subtotal, "subtotal")
    if amount < ZERO:
        raise ValidationError("NEGATIVE_SUBTOTAL", "subtotal must not be negative")
    if settings is None:
        return PromotionResult(subtotal=amount)

    progress: LoyaltyProgress | None = None
    earned = False
    if settings.loyalty_enabled:
        threshold = quantize(Decimal(settings.loyalty_spend_threshold))
        reward = quantize(Decimal(settings.loyalty_reward_amount))
        before = _loyalty_progress_before(settings, history)
        after = before + amount
        earned = threshold > ZERO and after >= threshold
        current = after - threshold if earned else after
        progress = LoyaltyProgress(
            current=quantize(current),
            threshold=threshold,
            remaining=quantize(max(ZERO, threshold - current)),
            reward_amount=reward,
        )

    if settings.first_time_enabled and history.completed_orders == 0:
        percent = Decimal(settings.first_time_percent)
        discount = min(percent_of(amount, percent), amount)
        return PromotionResult(
            subtotal=amount,
            promotion=FirstTimeDiscount(percent=percent, discount=discount),
            loyalty_progress=_without_reward(progress, amount, earned),
        )

    if earned and progress is not None:
        return PromotionResult(
            subtotal=amount,
            promotion=LoyaltyReward(reward=progress.reward_amount),
            loyalty_progress=progress,
        )
    return PromotionResult(subtotal=amount, loyalty_progress=progress)


def _without_reward(
    progress: LoyaltyProgress | None, amount: Decimal, earned: bool
) -> LoyaltyProgress | None:
    # A first-time order does not pay out a reward, so its progress is reported
    # without the threshold deduction.
    if progress is None or not earned:
        return progress
    current = progress.current + progress.threshold
    return LoyaltyProgress(
        current=current,
        threshold=progress.threshold,
        remaining=quantize(max(ZERO, progress.threshold - current)),
        reward_amount=progress.reward_amount,
    )


def validate_settings(
    *,
    first_time_percent: Decimal,
    loyalty_spend_threshold: Decimal,
    loyalty_reward_amount: Decimal,
    loyalty_enabled: bool,
) -> None:
    """Reject promotion settings that break the evaluator's preconditions."""

    if not ZERO <= first_time_percent <= Decimal("100"):
        raise ValidationError(
            "INVALID_PERCENT", "first_time_percent must be between 0 and 100"
        )
    if loyalty_spend_threshold < ZERO or loyalty_reward_amount < ZERO:
        raise ValidationError(
            "NEGATIVE_AMOUNT", "loyalty amounts must not be negative"
        )
    if loyalty_enabled and (
        loyalty_spend_threshold <= ZERO or loyalty_reward_amount <= ZERO
    ):
        raise ValidationError(
            "INVALID_LOYALTY",
            "loyalty threshold and reward must be positive when enabled",
        )
