"""Service layer: transactional operations built on the repositories."""

from . import checkout, credits, lifecycle, orders, promotions

__all__ = ["checkout", "credits", "lifecycle", "orders", "promotions"]
