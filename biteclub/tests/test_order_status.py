import pytest

from biteclub.app.domain import (
    ACTIVE,
    TERMINAL,
    TRANSITIONS,
    LedgerEffect,
    OrderAction,
    OrderStatus,
    can_transition,
    next_transition,
)


@pytest.mark.parametrize(
    "src, action, dst",
    [
        (OrderStatus.PENDING, OrderAction.ACCEPT, OrderStatus.CONFIRMED),
        (OrderStatus.PENDING, OrderAction.REJECT, OrderStatus.CANCELLED),
        (OrderStatus.CONFIRMED, OrderAction.CANCEL, OrderStatus.CANCELLED),
        (OrderStatus.CONFIRMED, OrderAction.ADVANCE, OrderStatus.PREPARING),
        (OrderStatus.PREPARING, OrderAction.ADVANCE, OrderStatus.READY),
        (OrderStatus.CONFIRMED, OrderAction.CLOSEOUT, OrderStatus.COMPLETED),
        (OrderStatus.READY, OrderAction.CLOSEOUT, OrderStatus.COMPLETED),
    ],
)
def test_allowed_transitions(src, action, dst):
    assert next_transition(src, action).target is dst
    assert can_transition(src, dst)


def test_only_cancellations_refund():
    refunding = {key for key, t in TRANSITIONS.items() if t.effect is LedgerEffect.REFUND}
    assert refunding == {
        (OrderStatus.PENDING, OrderAction.REJECT),
        (OrderStatus.CONFIRMED, OrderAction.CANCEL),
    }


@pytest.mark.parametrize(
    "src, action",
    [
        (OrderStatus.PENDING, OrderAction.CLOSEOUT),
        (OrderStatus.PENDING, OrderAction.ADVANCE),
        (OrderStatus.PENDING, OrderAction.CANCEL),
        (OrderStatus.CONFIRMED, OrderAction.REJECT),
        (OrderStatus.PREPARING, OrderAction.CLOSEOUT),
        (OrderStatus.READY, OrderAction.ADVANCE),
    ],
)
def test_disallowed_transitions(src, action):
    assert next_transition(src, action) is None


@pytest.mark.parametrize("status", sorted(TERMINAL))
def test_terminal_states_have_no_exits(status):
    assert all(next_transition(status, action) is None for action in OrderAction)


def test_active_states_exclude_terminal():
    assert not TERMINAL.intersection(ACTIVE)
    assert len(ACTIVE) + len(TERMINAL) == len(OrderStatus)
