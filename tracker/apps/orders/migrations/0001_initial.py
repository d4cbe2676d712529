# Generated migration - Create orders and order_history tables
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


STATUS_CHOICES = [
    ("Placed", "Placed"),
    ("Confirmed", "Confirmed"),
    ("Preparing", "Preparing"),
    ("Out for Delivery", "Out for Delivery"),
    ("Delivered", "Delivered"),
    ("Cancelled", "Cancelled"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user_id", models.IntegerField()),
                ("customer_name", models.CharField(blank=True, default="", max_length=100)),
                ("item", models.CharField(max_length=255)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="Placed", max_length=32)),
                ("delivery_latitude", models.FloatField(blank=True, null=True)),
                ("delivery_longitude", models.FloatField(blank=True, null=True)),
                ("destination_latitude", models.FloatField(blank=True, null=True)),
                ("destination_longitude", models.FloatField(blank=True, null=True)),
                ("eta", models.IntegerField(blank=True, help_text="Minutes to destination", null=True)),
            ],
            options={
                "db_table": "orders",
                "indexes": [
                    models.Index(fields=["status"], name="orders_status_idx"),
                    models.Index(fields=["user_id"], name="orders_user_id_idx"),
                    models.Index(fields=["created_at"], name="orders_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                ("delivery_latitude", models.FloatField(blank=True, null=True)),
                ("delivery_longitude", models.FloatField(blank=True, null=True)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="history",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "order_history",
                "ordering": ["timestamp", "id"],
                "indexes": [
                    models.Index(fields=["order", "timestamp"], name="order_history_order_ts_idx"),
                ],
            },
        ),
    ]
