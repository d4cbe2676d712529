ORDER_GROUP_NAME = "order-{order_id}"

# Channel-layer message types; Channels dispatches them to consumer methods
# of the same name.
CHANNEL_EVENTS = {
    "ORDER_STATUS_UPDATED": "order_status_updated",
    "DELIVERY_LOCATION_UPDATED": "delivery_location_updated",
}

# Frame types seen by WebSocket clients.
WIRE_EVENTS = {
    "ORDER_STATUS_UPDATED": "OrderStatusUpdated",
    "DELIVERY_LOCATION_UPDATED": "DeliveryLocationUpdated",
    "ORDER_SNAPSHOT": "OrderSnapshot",
}

SIMULATOR_ACTOR = "simulator"


def order_group_name(order_id):
    return ORDER_GROUP_NAME.format(order_id=order_id)
