"""Cart pricing and promotion evaluation."""

from .cart import CartLine, PricedCart, PricedLine, price_cart
from .promotions import (
    FIRST_TIME,
    LOYALTY_REWARD,
    FirstTimeDiscount,
    LoyaltyProgress,
    LoyaltyReward,
    NoPromotion,
    OrderHistory,
    PromotionResult,
    evaluate,
    validate_settings,
)

__all__ = [
    "CartLine",
    "FIRST_TIME",
    "FirstTimeDiscount",
    "LOYALTY_REWARD",
    "LoyaltyProgress",
    "LoyaltyReward",
    "NoPromotion",
    "OrderHistory",
    "PricedCart",
    "PricedLine",
    "PromotionResult",
    "evaluate",
    "price_cart",
    "validate_settings",
]
