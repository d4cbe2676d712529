import logging
from typing import Any, Dict, List, Optional

from django.conf import settings

from apps.core.exceptions import InvalidTransition, ValidationError
from apps.tracking.geo import estimate_minutes
from infrastructure.cache import CacheKeys

from . import state_machine
from .constants import (
    API_ACTOR,
    DEFAULT_RECOMMENDATION_LIMIT,
    KAFKA_TOPICS,
    MAX_RECOMMENDATION_LIMIT,
)
from .serializers import OrderHistorySerializer, OrderSerializer
from .state_machine import OrderStatus

logger = logging.getLogger(__name__)


def invalidate_order_cache(cache, order_id, user_id):
    """Drop the order's own key and every derived key that embeds it."""
    cache.remove(CacheKeys.order(order_id))
    cache.remove(CacheKeys.timeline(order_id))
    cache.remove(CacheKeys.recommendations(user_id))
    cache.remove(CacheKeys.user_orders(user_id))
    cache.remove_by_prefix(CacheKeys.user_orders_prefix(user_id))


def _validate_coordinates(lat, lng):
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        raise ValidationError("Latitude and longitude must be numbers")
    if not -90 <= lat <= 90:
        raise ValidationError("Latitude must be between -90 and 90")
    if not -180 <= lng <= 180:
        raise ValidationError("Longitude must be between -180 and 180")
    return lat, lng


class OrderService:
    """
    Manual order operations invoked by the HTTP layer.

    Writes go through the store first; cache invalidation, broadcasting and
    event publishing follow and never fail the operation.
    """

    def __init__(self, store, cache, broadcaster, identity, events, avg_speed_kmh=None, default_destination=None):
        self.store = store
        self.cache = cache
        self.broadcaster = broadcaster
        self.identity = identity
        self.events = events
        self.avg_speed_kmh = avg_speed_kmh or settings.TRACKING_AVERAGE_SPEED_KMH
        self.default_destination = tuple(
            default_destination or settings.TRACKING_DEFAULT_DESTINATION
        )

    # Writes

    def place_order(self, user_id, item, destination_lat=None, destination_lng=None, customer_name=None):
        if not item or not str(item).strip():
            raise ValidationError("Item is required")
        if (destination_lat is None) != (destination_lng is None):
            raise ValidationError("Destination needs both latitude and longitude")
        if destination_lat is None:
            destination_lat, destination_lng = self.default_destination
        destination_lat, destination_lng = _validate_coordinates(destination_lat, destination_lng)

        user = self.identity.validate_user(user_id)
        order = self.store.create_order(
            user_id=user_id,
            customer_name=customer_name or user.get("username") or "",
            item=str(item).strip(),
            status=OrderStatus.PLACED,
            destination_latitude=destination_lat,
            destination_longitude=destination_lng,
        )
        logger.info(f"Order {order.pk} placed by user {user_id}")

        invalidate_order_cache(self.cache, order.pk, order.user_id)
        self.events.publish(
            KAFKA_TOPICS["ORDER_PLACED"],
            {
                "orderId": order.pk,
                "userId": order.user_id,
                "item": order.item,
                "createdAt": order.created_at,
            },
            key=order.pk,
        )
        return order

    def update_status(self, order_id, new_status, actor_id=None):
        target = OrderStatus.parse(new_status)
        updated_by = self._actor_name(actor_id)

        order = self.store.get_order(order_id)
        old_status = order.status
        order.status = state_machine.transition(order.status, target)
        if order.status == OrderStatus.parse(old_status):
            logger.debug(f"Order {order.pk} already {order.status}, nothing to record")
            return order
        if order.status == OrderStatus.DELIVERED:
            order.eta = 0
        elif order.status == OrderStatus.CANCELLED:
            order.eta = None
        history = self.store.save_with_history(order)
        logger.info(f"Order {order.pk} status {old_status} -> {order.status} by {updated_by}")

        invalidate_order_cache(self.cache, order.pk, order.user_id)
        self.broadcaster.publish_status(order, updated_by=updated_by, updated_at=history.timestamp)
        self.events.publish(
            KAFKA_TOPICS["ORDER_STATUS_CHANGED"],
            {
                "orderId": order.pk,
                "userId": order.user_id,
                "oldStatus": str(old_status),
                "newStatus": str(order.status),
                "updatedBy": updated_by,
                "updatedAt": history.timestamp,
            },
            key=order.pk,
        )
        return order

    def update_location(self, order_id, lat, lng, actor_id=None):
        lat, lng = _validate_coordinates(lat, lng)
        self._actor_name(actor_id)

        order = self.store.get_order(order_id)
        if state_machine.is_terminal(order.status):
            raise InvalidTransition(str(order.status))
        order.delivery_latitude = lat
        order.delivery_longitude = lng
        if not order.has_destination:
            order.destination_latitude, order.destination_longitude = self.default_destination
        order.eta = estimate_minutes(
            lat, lng, order.destination_latitude, order.destination_longitude, self.avg_speed_kmh
        )
        history = self.store.save_with_history(order)

        invalidate_order_cache(self.cache, order.pk, order.user_id)
        self.broadcaster.publish_location(order, updated_at=history.timestamp)
        return order

    # Reads

    def get_order(self, order_id) -> Dict[str, Any]:
        key = CacheKeys.order(order_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        data = dict(OrderSerializer(self.store.get_order(order_id)).data)
        self.cache.set(key, data, settings.CACHE_TTL_ORDER)
        return data

    def get_timeline(self, order_id) -> List[Dict[str, Any]]:
        key = CacheKeys.timeline(order_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        rows = OrderHistorySerializer(self.store.history_for(order_id), many=True).data
        data = [dict(row) for row in rows]
        self.cache.set(key, data, settings.CACHE_TTL_TIMELINE)
        return data

    def get_recommendations(self, user_id, limit=DEFAULT_RECOMMENDATION_LIMIT) -> List[Dict[str, Any]]:
        limit = max(1, min(int(limit), MAX_RECOMMENDATION_LIMIT))
        key = CacheKeys.recommendations(user_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached[:limit]
        # The cached list always holds the longest ranking any caller may ask for.
        rows = self.store.item_frequencies(user_id, MAX_RECOMMENDATION_LIMIT)
        data = [{"item": row["item"], "count": row["count"]} for row in rows]
        self.cache.set(key, data, settings.CACHE_TTL_RECOMMENDATIONS)
        return data[:limit]

    def get_user_orders(self, user_id, status: Optional[str] = None) -> List[Dict[str, Any]]:
        parsed = OrderStatus.parse(status) if status else None
        key = (
            CacheKeys.user_orders(user_id)
            if parsed is None
            else CacheKeys.user_orders(user_id, parsed.value)
        )
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        orders = self.store.orders_for_user(user_id, status=parsed)
        data = [dict(row) for row in OrderSerializer(orders, many=True).data]
        self.cache.set(key, data, settings.CACHE_TTL_USER_ORDERS)
        return data

    def _actor_name(self, actor_id):
        if actor_id is None:
            return API_ACTOR
        user = self.identity.validate_user(actor_id)
        return user.get("username") or f"user:{actor_id}"


_order_service = None


def get_order_service():
    global _order_service
    if _order_service is None:
        from apps.tracking.broadcaster import get_broadcaster
        from infrastructure.cache import get_cache_service
        from infrastructure.identity_client import get_identity_client
        from infrastructure.kafka_client import get_kafka_client

        from .store import order_store

        _order_service = OrderService(
            store=order_store,
            cache=get_cache_service(),
            broadcaster=get_broadcaster(),
            identity=get_identity_client(),
            events=get_kafka_client(),
        )
    return _order_service
