import uuid
import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [
    ("Pending", "Pending"),
    ("Accepted", "Accepted"),
    ("Rejected", "Rejected"),
    ("Preparing", "Preparing"),
    ("Ready", "Ready"),
    ("OutForDelivery", "Out for delivery"),
    ("Delivered", "Delivered"),
    ("Cancelled", "Cancelled"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("order_number", models.CharField(max_length=24, unique=True)),
                ("customer_name", models.CharField(blank=True, max_length=160)),
                ("customer_phone", models.CharField(blank=True, max_length=40)),
                ("restaurant_id", models.CharField(db_index=True, max_length=64)),
                ("restaurant_name", models.CharField(max_length=160)),
                ("restaurant_image", models.CharField(blank=True, default="placeholder.jpg", max_length=255)),
                ("restaurant_address", models.CharField(blank=True, max_length=255)),
                ("items_json", models.JSONField(default=list)),
                ("delivery_address", models.JSONField(default=dict)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("taxes", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("total", models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ("payment_method", models.CharField(choices=[("COD", "Cash on delivery"), ("online", "Online"), ("wallet", "Wallet")], default="COD", max_length=10)),
                ("payment_status", models.CharField(choices=[("Pending", "Pending"), ("Paid", "Paid"), ("Failed", "Failed"), ("Refunded", "Refunded")], default="Pending", max_length=10)),
                ("status", models.CharField(choices=STATUS_CHOICES, db_index=True, default="Pending", max_length=20)),
                ("accepted_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.CharField(blank=True, max_length=200)),
                ("estimated_delivery_time", models.DateTimeField(blank=True, null=True)),
                ("delivery_distance", models.FloatField(default=0)),
                ("delivery_duration", models.PositiveIntegerField(default=30)),
                ("delivery_otp", models.CharField(blank=True, max_length=8, null=True)),
                ("instructions", models.TextField(blank=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=200)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_by", models.CharField(blank=True, max_length=20)),
                ("rating", models.PositiveSmallIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)])),
                ("review", models.TextField(blank=True)),
                ("review_date", models.DateTimeField(blank=True, null=True)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="orders", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["customer", "status", "created_at"], name="orders_customer_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusChange",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ("source", models.CharField(blank=True, max_length=32)),
                ("note", models.CharField(blank=True, max_length=200)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="status_changes", to="orders.order")),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [models.Index(fields=["order", "created_at"], name="orders_status_idx")],
            },
        ),
    ]
