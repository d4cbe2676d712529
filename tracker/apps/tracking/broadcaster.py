"""
Real-time fan-out of order events to WebSocket subscribers.

Events go to the Channels group ``order-<id>``; every consumer joined to
that group at publish time receives them once. Nothing is queued for
clients that are offline.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

from .constants import CHANNEL_EVENTS, order_group_name

logger = logging.getLogger(__name__)


def status_payload(order, updated_by, updated_at=None):
    return {
        "orderId": order.pk,
        "status": str(order.status),
        "updatedAt": (updated_at or timezone.now()).isoformat(),
        "updatedBy": updated_by,
    }


def location_payload(order, updated_at=None):
    return {
        "orderId": order.pk,
        "latitude": order.delivery_latitude,
        "longitude": order.delivery_longitude,
        "eta": order.eta,
        "updatedAt": (updated_at or timezone.now()).isoformat(),
    }


class TrackingBroadcaster:
    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    async def apublish(self, order_id, event_type, payload):
        layer = self.channel_layer
        if layer is None:
            logger.warning("No channel layer configured, dropping tracking event")
            return False
        try:
            await layer.group_send(
                order_group_name(order_id),
                {"type": event_type, "data": payload},
            )
        except Exception as e:
            logger.warning(f"Broadcast of {event_type} for order {order_id} failed: {e}")
            return False
        return True

    async def apublish_status(self, order, updated_by="system", updated_at=None):
        return await self.apublish(
            order.pk,
            CHANNEL_EVENTS["ORDER_STATUS_UPDATED"],
            status_payload(order, updated_by, updated_at),
        )

    async def apublish_location(self, order, updated_at=None):
        return await self.apublish(
            order.pk,
            CHANNEL_EVENTS["DELIVERY_LOCATION_UPDATED"],
            location_payload(order, updated_at),
        )

    def publish_status(self, order, updated_by="system", updated_at=None):
        return async_to_sync(self.apublish_status)(order, updated_by, updated_at)

    def publish_location(self, order, updated_at=None):
        return async_to_sync(self.apublish_location)(order, updated_at)


_broadcaster = None


def get_broadcaster():
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = TrackingBroadcaster()
    return _broadcaster
