"""Order status enumeration and the lifecycle transition table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OrderStatus(str, Enum):
    """Enumerate the lifecycle states for an order."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OrderAction(str, Enum):
    """Restaurant-side actions that move an order between states."""

    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    ADVANCE = "advance"
    CLOSEOUT = "closeout"


class LedgerEffect(str, Enum):
    """Credit ledger side effect attached to a transition."""

    NONE = "none"
    REFUND = "refund"


@dataclass(frozen=True)
class Transition:
    target: OrderStatus
    effect: LedgerEffect = LedgerEffect.NONE


TERMINAL: frozenset[OrderStatus] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
)

ACTIVE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)

TRANSITIONS: dict[tuple[OrderStatus, OrderAction], Transition] = {
    (OrderStatus.PENDING, OrderAction.ACCEPT): Transition(OrderStatus.CONFIRMED),
    (OrderStatus.PENDING, OrderAction.REJECT): Transition(
        OrderStatus.CANCELLED, LedgerEffect.REFUND
    ),
    (OrderStatus.CONFIRMED, OrderAction.CANCEL): Transition(
        OrderStatus.CANCELLED, LedgerEffect.REFUND
    ),
    (OrderStatus.CONFIRMED, OrderAction.ADVANCE): Transition(OrderStatus.PREPARING),
    (OrderStatus.PREPARING, OrderAction.ADVANCE): Transition(OrderStatus.READY),
    (OrderStatus.CONFIRMED, OrderAction.CLOSEOUT): Transition(OrderStatus.COMPLETED),
    (OrderStatus.READY, OrderAction.CLOSEOUT): Transition(OrderStatus.COMPLETED),
}

# Column stamped when an order enters a status.
TIMESTAMP_FIELDS: dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "accepted_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def next_transition(src: OrderStatus, action: OrderAction) -> Transition | None:
    """Return the transition for ``action`` from ``src`` or ``None``."""

    return TRANSITIONS.get((src, action))


def can_transition(src: OrderStatus, dst: OrderStatus) -> bool:
    """Return ``True`` if some action moves an order from ``src`` to ``dst``."""

    return any(
        state == src and transition.target == dst
        for (state, _), transition in TRANSITIONS.items()
    )
