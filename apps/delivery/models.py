from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from apps.common.models import BaseModel


class DeliveryOrder(BaseModel):
    READY_FOR_PICKUP = "ready_for_pickup"
    ACCEPTED = "accepted"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (READY_FOR_PICKUP, "Ready for pickup"),
        (ACCEPTED, "Accepted"),
        (PICKED_UP, "Picked up"),
        (IN_TRANSIT, "In transit"),
        (DELIVERED, "Delivered"),
        (CANCELLED, "Cancelled"),
    ]
    ACTIVE_STATUSES = {ACCEPTED, PICKED_UP, IN_TRANSIT}
    SOURCE_CHOICES = [("callback", "Customer backend callback"), ("poller", "Ready-order poller")]

    # One delivery record per customer order.
    order_id = models.UUIDField(unique=True)
    order_number = models.CharField(max_length=24, blank=True)
    courier = models.ForeignKey(
        "delivery.Courier", on_delete=models.SET_NULL, blank=True, null=True, related_name="deliveries"
    )
    restaurant_id = models.CharField(max_length=64)
    restaurant_name = models.CharField(max_length=160, blank=True)
    restaurant_location = models.JSONField(default=dict, blank=True)
    customer_id = models.CharField(max_length=64)
    customer_name = models.CharField(max_length=160, blank=True)
    customer_phone = models.CharField(max_length=40, blank=True)
    delivery_address = models.JSONField(default=dict, blank=True)
    order_amount = models.DecimalField(max_digits=10, decimal_places=2)
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    distance = models.FloatField(default=0)
    estimated_delivery_time = models.PositiveIntegerField(blank=True, null=True)  # minutes
    actual_delivery_time = models.PositiveIntegerField(blank=True, null=True)  # minutes
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=READY_FOR_PICKUP, db_index=True)
    assigned_at = models.DateTimeField(blank=True, null=True)
    accepted_at = models.DateTimeField(blank=True, null=True)
    rejected_at = models.DateTimeField(blank=True, null=True)
    picked_up_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    rejection_reason = models.CharField(max_length=200, blank=True)
    cancellation_reason = models.CharField(max_length=200, blank=True)
    delivery_otp = models.CharField(max_length=8, blank=True, null=True)
    is_paid = models.BooleanField(default=False)
    payment_method = models.CharField(max_length=10, choices=[("cash", "Cash"), ("online", "Online")], default="online")
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default="callback")

    class Meta:
        indexes = [
            models.Index(fields=["status", "courier", "created_at"], name="delivery_status_idx"),
        ]

    def __str__(self) -> str:
        return self.order_number or str(self.order_id)


class Courier(BaseModel):
    VEHICLE_CHOICES = [("bike", "Bike"), ("scooter", "Scooter"), ("bicycle", "Bicycle"), ("car", "Car")]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="courier")
    phone = models.CharField(max_length=40, blank=True)
    vehicle_type = models.CharField(max_length=10, choices=VEHICLE_CHOICES, default="bike")
    vehicle_number = models.CharField(max_length=32, blank=True)
    is_online = models.BooleanField(default=False)
    is_available = models.BooleanField(default=True)
    current_order = models.ForeignKey(
        DeliveryOrder, on_delete=models.SET_NULL, blank=True, null=True, related_name="+"
    )
    completed_orders = models.PositiveIntegerField(default=0)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    rating = models.DecimalField(
        max_digits=3, decimal_places=2, default=Decimal("5"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)
    location_updated_at = models.DateTimeField(blank=True, null=True)

    def __str__(self) -> str:
        return self.user.get_username()
