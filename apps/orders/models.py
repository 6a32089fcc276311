from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from apps.common.models import BaseModel


class Order(BaseModel):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    PREPARING = "Preparing"
    READY = "Ready"
    OUT_FOR_DELIVERY = "OutForDelivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (ACCEPTED, "Accepted"),
        (REJECTED, "Rejected"),
        (PREPARING, "Preparing"),
        (READY, "Ready"),
        (OUT_FOR_DELIVERY, "Out for delivery"),
        (DELIVERED, "Delivered"),
        (CANCELLED, "Cancelled"),
    ]
    TERMINAL_STATUSES = {REJECTED, DELIVERED, CANCELLED}
    PAYMENT_METHOD_CHOICES = [("COD", "Cash on delivery"), ("online", "Online"), ("wallet", "Wallet")]
    PAYMENT_STATUS_CHOICES = [("Pending", "Pending"), ("Paid", "Paid"), ("Failed", "Failed"), ("Refunded", "Refunded")]

    order_number = models.CharField(max_length=24, unique=True)
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")
    customer_name = models.CharField(max_length=160, blank=True)
    customer_phone = models.CharField(max_length=40, blank=True)
    restaurant_id = models.CharField(max_length=64, db_index=True)
    restaurant_name = models.CharField(max_length=160)
    restaurant_image = models.CharField(max_length=255, blank=True, default="placeholder.jpg")
    restaurant_address = models.CharField(max_length=255, blank=True)
    # Point-in-time snapshot: [{menu_item, name, price, quantity, image, customization}]
    items_json = models.JSONField(default=list)
    delivery_address = models.JSONField(default=dict)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    taxes = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    total = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, default="COD")
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default="Pending")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING, db_index=True)
    accepted_at = models.DateTimeField(blank=True, null=True)
    rejected_at = models.DateTimeField(blank=True, null=True)
    rejection_reason = models.CharField(max_length=200, blank=True)
    estimated_delivery_time = models.DateTimeField(blank=True, null=True)
    delivery_distance = models.FloatField(default=0)
    delivery_duration = models.PositiveIntegerField(default=30)
    delivery_otp = models.CharField(max_length=8, blank=True, null=True)
    instructions = models.TextField(blank=True)
    cancellation_reason = models.CharField(max_length=200, blank=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancelled_by = models.CharField(max_length=20, blank=True)
    rating = models.PositiveSmallIntegerField(blank=True, null=True, validators=[MinValueValidator(1), MaxValueValidator(5)])
    review = models.TextField(blank=True)
    review_date = models.DateTimeField(blank=True, null=True)

    class Meta:
        indexes = [models.Index(fields=["customer", "status", "created_at"], name="orders_customer_status_idx")]

    def __str__(self) -> str:
        return self.order_number

    def save(self, *args, **kwargs):
        from apps.common.codes import generate_order_number

        is_new = self._state.adding
        if not self.order_number:
            self.order_number = generate_order_number(
                exists=lambda code: type(self).objects.filter(order_number=code).exists()
            )
        super().save(*args, **kwargs)
        if is_new:
            self.status_changes.create(status=self.status, source="initial")

    def set_status(self, status: str, *, source: str = "", note: str = "", extra_fields: tuple[str, ...] = ()) -> bool:
        """Persist ``status`` and log it; returns False when it was already current.

        Callers hold the row lock, so ``self.status`` is the stored value.
        """
        previous = self.status
        self.status = status
        self.save(update_fields=["status", "updated_at", *extra_fields])
        if previous == status:
            return False
        self.status_changes.create(status=status, source=source, note=note[:200])
        return True


class OrderStatusChange(BaseModel):
    SOURCE_CHOICES = [
        ("initial", "Initial"),
        ("customer", "Customer"),
        ("restaurant", "Restaurant"),
        ("delivery", "Delivery"),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_changes")
    status = models.CharField(max_length=20, choices=Order.STATUS_CHOICES)
    source = models.CharField(max_length=32, blank=True)
    note = models.CharField(max_length=200, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["order", "created_at"], name="orders_status_idx"),
        ]
        ordering = ["created_at"]
