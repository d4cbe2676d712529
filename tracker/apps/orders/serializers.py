from rest_framework import serializers

from apps.core import exceptions

from .models import Order, OrderHistory
from .state_machine import OrderStatus


class OrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "customer_name",
            "item",
            "status",
            "delivery_latitude",
            "delivery_longitude",
            "destination_latitude",
            "destination_longitude",
            "eta",
            "created_at",
            "updated_at",
        ]


class OrderHistorySerializer(serializers.ModelSerializer):
    order_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderHistory
        fields = ["id", "order_id", "status", "delivery_latitude", "delivery_longitude", "timestamp"]


class PlaceOrderSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    item = serializers.CharField(max_length=255)
    customer_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    destination_latitude = serializers.FloatField(min_value=-90, max_value=90, required=False)
    destination_longitude = serializers.FloatField(min_value=-180, max_value=180, required=False)

    def validate(self, attrs):
        has_lat = "destination_latitude" in attrs
        has_lng = "destination_longitude" in attrs
        if has_lat != has_lng:
            raise serializers.ValidationError(
                "destination_latitude and destination_longitude must be given together"
            )
        return attrs


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=50)
    actor_id = serializers.IntegerField(min_value=1, required=False)

    def validate_status(self, value):
        try:
            return OrderStatus.parse(value).value
        except exceptions.ValidationError as e:
            raise serializers.ValidationError(str(e))


class LocationUpdateSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    actor_id = serializers.IntegerField(min_value=1, required=False)
