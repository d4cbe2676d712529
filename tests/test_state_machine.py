import pytest

from apps.core.exceptions import InvalidTransition, ValidationError
from apps.orders import state_machine
from apps.orders.state_machine import OrderStatus


def test_advance_walks_the_delivery_sequence():
    status = OrderStatus.PLACED
    seen = [status]
    while not state_machine.is_terminal(status):
        status = state_machine.advance(status)
        seen.append(status)
    assert seen == [
        OrderStatus.PLACED,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ]


@pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
def test_terminal_statuses_cannot_advance(terminal):
    with pytest.raises(InvalidTransition):
        state_machine.advance(terminal)


@pytest.mark.parametrize("terminal", ["Delivered", "Cancelled"])
@pytest.mark.parametrize("target", list(OrderStatus))
def test_terminal_orders_reject_every_manual_change(terminal, target):
    with pytest.raises(InvalidTransition) as excinfo:
        state_machine.transition(terminal, target)
    assert excinfo.value.code == "INVALID_TRANSITION"


@pytest.mark.parametrize(
    "current",
    [OrderStatus.PLACED, OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY],
)
def test_cancel_allowed_from_every_non_terminal_status(current):
    assert state_machine.transition(current, "Cancelled") == OrderStatus.CANCELLED


def test_manual_change_may_skip_steps():
    assert state_machine.transition("Placed", "Out for Delivery") == OrderStatus.OUT_FOR_DELIVERY


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Out for Delivery", OrderStatus.OUT_FOR_DELIVERY),
        ("OutForDelivery", OrderStatus.OUT_FOR_DELIVERY),
        ("out_for_delivery", OrderStatus.OUT_FOR_DELIVERY),
        (" delivered ", OrderStatus.DELIVERED),
        (OrderStatus.PREPARING, OrderStatus.PREPARING),
    ],
)
def test_parse_accepts_values_and_names(raw, expected):
    assert OrderStatus.parse(raw) == expected


@pytest.mark.parametrize("raw", ["", None, "Shipped", "Deliver"])
def test_parse_rejects_unknown_statuses(raw):
    with pytest.raises(ValidationError):
        OrderStatus.parse(raw)


def test_is_terminal():
    assert state_machine.is_terminal("Delivered")
    assert state_machine.is_terminal("Cancelled")
    assert not state_machine.is_terminal("Preparing")
