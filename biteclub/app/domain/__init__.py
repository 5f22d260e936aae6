"""Domain models and helpers."""

from .context import ActingContext, Role, system_context
from .errors import (
    BiteClubError,
    ConcurrencyConflict,
    Forbidden,
    InsufficientCredit,
    InvalidTransition,
    NotFound,
    PersistenceFailure,
    ValidationError,
)
from .order_status import (
    ACTIVE,
    TERMINAL,
    TRANSITIONS,
    LedgerEffect,
    OrderAction,
    OrderStatus,
    Transition,
    can_transition,
    next_transition,
)

__all__ = [
    "ACTIVE",
    "ActingContext",
    "BiteClubError",
    "ConcurrencyConflict",
    "Forbidden",
    "InsufficientCredit",
    "InvalidTransition",
    "LedgerEffect",
    "NotFound",
    "OrderAction",
    "OrderStatus",
    "PersistenceFailure",
    "Role",
    "TERMINAL",
    "TRANSITIONS",
    "Transition",
    "ValidationError",
    "can_transition",
    "next_transition",
    "system_context",
]
