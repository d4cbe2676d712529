KAFKA_TOPICS = {
    "ORDER_PLACED": "orders.order.placed",
    "ORDER_STATUS_CHANGED": "orders.order.status.changed",
}

DEFAULT_RECOMMENDATION_LIMIT = 5
MAX_RECOMMENDATION_LIMIT = 20

API_ACTOR = "api"
