"""
Order status state machine.

Placed -> Confirmed -> Preparing -> Out for Delivery -> Delivered, with
Cancelled reachable from every non-terminal status.
"""
from django.db import models

from apps.core.exceptions import InvalidTransition, ValidationError


class OrderStatus(models.TextChoices):
    PLACED = "Placed", "Placed"
    CONFIRMED = "Confirmed", "Confirmed"
    PREPARING = "Preparing", "Preparing"
    OUT_FOR_DELIVERY = "Out for Delivery", "Out for Delivery"
    DELIVERED = "Delivered", "Delivered"
    CANCELLED = "Cancelled", "Cancelled"

    @classmethod
    def parse(cls, raw):
        """Accept a stored value ("Out for Delivery") or a name ("OutForDelivery")."""
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip()
        for status in cls:
            if text == status.value:
                return status
        squashed = text.replace(" ", "").replace("_", "").lower()
        for status in cls:
            if squashed == status.value.replace(" ", "").lower():
                return status
        raise ValidationError(
            f"Unknown order status '{raw}'. Expected one of: {', '.join(cls.values)}"
        )


LINEAR_SEQUENCE = (
    OrderStatus.PLACED,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def is_terminal(status):
    return OrderStatus.parse(status) in TERMINAL_STATUSES


def advance(current):
    """Next status in the delivery sequence, used by the route simulator."""
    current = OrderStatus.parse(current)
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(current.value)
    return LINEAR_SEQUENCE[LINEAR_SEQUENCE.index(current) + 1]


def transition(current, target):
    """
    Validate a manual status change.

    Any known status may be requested; only orders that already reached a
    terminal status are frozen.
    """
    current = OrderStatus.parse(current)
    target = OrderStatus.parse(target)
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(current.value, target.value)
    return target
