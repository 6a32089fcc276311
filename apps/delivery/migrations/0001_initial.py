import uuid
import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DeliveryOrder",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("order_id", models.UUIDField(unique=True)),
                ("order_number", models.CharField(blank=True, max_length=24)),
                ("restaurant_id", models.CharField(max_length=64)),
                ("restaurant_name", models.CharField(blank=True, max_length=160)),
                ("restaurant_location", models.JSONField(blank=True, default=dict)),
                ("customer_id", models.CharField(max_length=64)),
                ("customer_name", models.CharField(blank=True, max_length=160)),
                ("customer_phone", models.CharField(blank=True, max_length=40)),
                ("delivery_address", models.JSONField(blank=True, default=dict)),
                ("order_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("distance", models.FloatField(default=0)),
                ("estimated_delivery_time", models.PositiveIntegerField(blank=True, null=True)),
                ("actual_delivery_time", models.PositiveIntegerField(blank=True, null=True)),
                ("status", models.CharField(choices=[("ready_for_pickup", "Ready for pickup"), ("accepted", "Accepted"), ("picked_up", "Picked up"), ("in_transit", "In transit"), ("delivered", "Delivered"), ("cancelled", "Cancelled")], db_index=True, default="ready_for_pickup", max_length=20)),
                ("assigned_at", models.DateTimeField(blank=True, null=True)),
                ("accepted_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("picked_up_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.CharField(blank=True, max_length=200)),
                ("cancellation_reason", models.CharField(blank=True, max_length=200)),
                ("delivery_otp", models.CharField(blank=True, max_length=8, null=True)),
                ("is_paid", models.BooleanField(default=False)),
                ("payment_method", models.CharField(choices=[("cash", "Cash"), ("online", "Online")], default="online", max_length=10)),
                ("source", models.CharField(choices=[("callback", "Customer backend callback"), ("poller", "Ready-order poller")], default="callback", max_length=10)),
            ],
        ),
        migrations.CreateModel(
            name="Courier",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("phone", models.CharField(blank=True, max_length=40)),
                ("vehicle_type", models.CharField(choices=[("bike", "Bike"), ("scooter", "Scooter"), ("bicycle", "Bicycle"), ("car", "Car")], default="bike", max_length=10)),
                ("vehicle_number", models.CharField(blank=True, max_length=32)),
                ("is_online", models.BooleanField(default=False)),
                ("is_available", models.BooleanField(default=True)),
                ("completed_orders", models.PositiveIntegerField(default=0)),
                ("total_earnings", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("rating", models.DecimalField(decimal_places=2, default=Decimal("5"), max_digits=3, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(5)])),
                ("latitude", models.FloatField(blank=True, null=True)),
                ("longitude", models.FloatField(blank=True, null=True)),
                ("location_updated_at", models.DateTimeField(blank=True, null=True)),
                ("current_order", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="delivery.deliveryorder")),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="courier", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.AddField(
            model_name="deliveryorder",
            name="courier",
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="deliveries", to="delivery.courier"),
        ),
        migrations.AddIndex(
            model_name="deliveryorder",
            index=models.Index(fields=["status", "courier", "created_at"], name="delivery_status_idx"),
        ),
    ]
