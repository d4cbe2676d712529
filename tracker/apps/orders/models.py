from django.db import models
from django.utils import timezone

from .state_machine import OrderStatus


class Order(models.Model):
    user_id = models.IntegerField()
    customer_name = models.CharField(max_length=100, blank=True, default="")
    item = models.CharField(max_length=255)
    status = models.CharField(
        max_length=32, choices=OrderStatus.choices, default=OrderStatus.PLACED
    )
    delivery_latitude = models.FloatField(null=True, blank=True)
    delivery_longitude = models.FloatField(null=True, blank=True)
    destination_latitude = models.FloatField(null=True, blank=True)
    destination_longitude = models.FloatField(null=True, blank=True)
    eta = models.IntegerField(null=True, blank=True, help_text="Minutes to destination")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["user_id"], name="orders_user_id_idx"),
            models.Index(fields=["created_at"], name="orders_created_idx"),
        ]

    def __str__(self):
        return f"Order #{self.pk} - {self.status}"

    @property
    def has_position(self):
        return self.delivery_latitude is not None and self.delivery_longitude is not None

    @property
    def has_destination(self):
        return (
            self.destination_latitude is not None
            and self.destination_longitude is not None
        )


class OrderHistory(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="history")
    status = models.CharField(max_length=32, choices=OrderStatus.choices)
    delivery_latitude = models.FloatField(null=True, blank=True)
    delivery_longitude = models.FloatField(null=True, blank=True)
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "order_history"
        indexes = [
            models.Index(fields=["order", "timestamp"], name="order_history_order_ts_idx"),
        ]
        ordering = ["timestamp", "id"]

    def __str__(self):
        return f"{self.order_id} - {self.status} @ {self.timestamp.isoformat()}"

    @classmethod
    def snapshot(cls, order, timestamp=None):
        return cls(
            order=order,
            status=order.status,
            delivery_latitude=order.delivery_latitude,
            delivery_longitude=order.delivery_longitude,
            timestamp=timestamp or timezone.now(),
        )
