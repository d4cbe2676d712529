from django.urls import re_path

from .consumers import OrderTrackingConsumer

websocket_urlpatterns = [
    re_path(r"^ws/orders/(?P<order_id>\d+)/$", OrderTrackingConsumer.as_asgi()),
    re_path(r"^ws/order-tracking/$", OrderTrackingConsumer.as_asgi()),
]
