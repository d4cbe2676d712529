import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from apps.orders.models import Order
from apps.orders.serializers import OrderSerializer

from .constants import WIRE_EVENTS, order_group_name

logger = logging.getLogger(__name__)


class OrderTrackingConsumer(AsyncWebsocketConsumer):
    """
    Subscribes a WebSocket to one or more order topics.

    ``/ws/orders/<id>/`` joins that order's topic on connect and sends the
    current state. ``/ws/order-tracking/`` starts with no topics; the client
    sends ``{"type": "join", "orderId": <id>}`` (or ``leave``) instead.
    """

    async def connect(self):
        self.groups_joined = set()
        order_id = self.scope.get("url_route", {}).get("kwargs", {}).get("order_id")

        if order_id is None:
            await self.accept()
            return

        snapshot = await self.get_order_data(order_id)
        if snapshot is None:
            await self.close()
            return

        await self.join(order_id)
        await self.accept()
        await self.send_event(WIRE_EVENTS["ORDER_SNAPSHOT"], snapshot)

    async def disconnect(self, close_code):
        for group_name in list(getattr(self, "groups_joined", ())):
            await self.channel_layer.group_discard(group_name, self.channel_name)
        self.groups_joined = set()

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            await self.send_error("Invalid JSON")
            return
        if not isinstance(data, dict):
            await self.send_error("Expected a JSON object")
            return

        message_type = data.get("type")
        if message_type == "ping":
            await self.send(text_data=json.dumps({"type": "pong"}))
        elif message_type == "join":
            await self.handle_join(data.get("orderId"))
        elif message_type == "leave":
            await self.handle_leave(data.get("orderId"))
        else:
            await self.send_error(f"Unsupported message type: {message_type}")

    async def handle_join(self, order_id):
        if not isinstance(order_id, int) or isinstance(order_id, bool):
            await self.send_error("orderId must be an integer")
            return
        snapshot = await self.get_order_data(order_id)
        if snapshot is None:
            await self.send_error(f"Order not found: {order_id}")
            return
        await self.join(order_id)
        await self.send_event(WIRE_EVENTS["ORDER_SNAPSHOT"], snapshot)

    async def handle_leave(self, order_id):
        group_name = order_group_name(order_id)
        if group_name in self.groups_joined:
            await self.channel_layer.group_discard(group_name, self.channel_name)
            self.groups_joined.discard(group_name)

    async def join(self, order_id):
        group_name = order_group_name(order_id)
        await self.channel_layer.group_add(group_name, self.channel_name)
        self.groups_joined.add(group_name)

    async def order_status_updated(self, event):
        """Forward an OrderStatusUpdated event to the socket"""
        await self.send_event(WIRE_EVENTS["ORDER_STATUS_UPDATED"], event["data"])

    async def delivery_location_updated(self, event):
        """Forward a DeliveryLocationUpdated event to the socket"""
        await self.send_event(WIRE_EVENTS["DELIVERY_LOCATION_UPDATED"], event["data"])

    async def send_event(self, event_type, data):
        await self.send(text_data=json.dumps({"type": event_type, "data": data}))

    async def send_error(self, message):
        await self.send(text_data=json.dumps({"type": "error", "message": message}))

    @database_sync_to_async
    def get_order_data(self, order_id):
        try:
            order = Order.objects.get(pk=order_id)
        except (Order.DoesNotExist, ValueError):
            return None
        return OrderSerializer(order).data
