import logging
from functools import wraps
from typing import Iterable, List

from django.db import DatabaseError, transaction
from django.db.models import Count

from apps.core.exceptions import NotFoundError, StoreUnavailable

from .models import Order, OrderHistory
from .state_machine import TERMINAL_STATUSES

logger = logging.getLogger(__name__)

SIMULATED_FIELDS = [
    "status",
    "delivery_latitude",
    "delivery_longitude",
    "destination_latitude",
    "destination_longitude",
    "eta",
    "updated_at",
]


def _guard(method):
    """Translate ORM failures into StoreUnavailable."""

    @wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DatabaseError as e:
            logger.error(f"Order store error in {method.__name__}: {e}")
            raise StoreUnavailable(f"Order store unavailable: {e}") from e

    return wrapper


class OrderStore:
    """Durable storage for orders and their append-only history."""

    @_guard
    def create_order(self, **fields) -> Order:
        with transaction.atomic():
            order = Order.objects.create(**fields)
            OrderHistory.snapshot(order, timestamp=order.created_at).save()
        return order

    @_guard
    def get_order(self, order_id) -> Order:
        try:
            return Order.objects.get(pk=order_id)
        except Order.DoesNotExist:
            raise NotFoundError("Order", order_id)

    @_guard
    def save_with_history(self, order: Order) -> OrderHistory:
        """Persist a single order change and append its history snapshot."""
        with transaction.atomic():
            order.save()
            history = OrderHistory.snapshot(order)
            history.save()
        return history

    @_guard
    def active_orders(self) -> List[Order]:
        return list(
            Order.objects.exclude(status__in=TERMINAL_STATUSES).order_by("id")
        )

    @_guard
    def commit_tick(self, orders: Iterable[Order], history: Iterable[OrderHistory]):
        """Write every order update and history row of one tick atomically."""
        orders = list(orders)
        history = list(history)
        if not orders and not history:
            return
        with transaction.atomic():
            for order in orders:
                order.save(update_fields=SIMULATED_FIELDS)
            OrderHistory.objects.bulk_create(history)

    @_guard
    def history_for(self, order_id) -> List[OrderHistory]:
        if not Order.objects.filter(pk=order_id).exists():
            raise NotFoundError("Order", order_id)
        return list(OrderHistory.objects.filter(order_id=order_id).order_by("timestamp", "id"))

    @_guard
    def orders_for_user(self, user_id, status=None) -> List[Order]:
        queryset = Order.objects.filter(user_id=user_id)
        if status is not None:
            queryset = queryset.filter(status=status)
        return list(queryset.order_by("-created_at", "-id"))

    @_guard
    def item_frequencies(self, user_id, limit=5):
        return list(
            Order.objects.filter(user_id=user_id)
            .values("item")
            .annotate(count=Count("id"))
            .order_by("-count", "item")[:limit]
        )


order_store = OrderStore()
