from __future__ import annotations

import datetime as dt
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.common.codes import generate_otp
from apps.outbox.api import enqueue
from apps.realtime.server import emit, order_room
from .models import Order
from .serializers import serialize_order

log = logging.getLogger(__name__)

# Both spellings reach this service; "OutForDelivery" is stored.
STATUS_ALIASES: dict[str, str] = {
    "Out for Delivery": Order.OUT_FOR_DELIVERY,
    "Out For Delivery": Order.OUT_FOR_DELIVERY,
}

ORDER_TRANSITIONS: dict[str, set[str]] = {
    # The restaurant may skip steps; only backward moves and leaving a terminal status are refused.
    Order.PENDING: {
        Order.ACCEPTED, Order.REJECTED, Order.PREPARING, Order.READY, Order.OUT_FOR_DELIVERY, Order.CANCELLED,
    },
    Order.ACCEPTED: {Order.PREPARING, Order.READY, Order.OUT_FOR_DELIVERY, Order.CANCELLED},
    Order.PREPARING: {Order.READY, Order.OUT_FOR_DELIVERY, Order.CANCELLED},
    Order.READY: {Order.OUT_FOR_DELIVERY, Order.DELIVERED, Order.CANCELLED},
    Order.OUT_FOR_DELIVERY: {Order.DELIVERED, Order.CANCELLED},
    Order.REJECTED: set(),
    Order.DELIVERED: set(),
    Order.CANCELLED: set(),
}

RESTAURANT_SYNC_STATUSES = {Order.OUT_FOR_DELIVERY, Order.DELIVERED}


class OrderError(Exception):
    status_code = 400


class InvalidStatus(OrderError):
    pass


class InvalidTransition(OrderError):
    def __init__(self, current: str, target: str):
        super().__init__(f"invalid transition: {current} -> {target}")
        self.current = current
        self.target = target


class ValidationFailed(OrderError):
    pass


def normalize_status(raw: Any) -> str:
    value = str(raw or "").strip()
    value = STATUS_ALIASES.get(value, value)
    if value not in ORDER_TRANSITIONS:
        raise InvalidStatus(f"invalid status: {raw!r}")
    return value


def can_transition(current: str, target: str) -> bool:
    # Re-applying the current status is an idempotent no-op (redelivered callbacks).
    return target == current or target in ORDER_TRANSITIONS.get(current, set())


# ----------------------------------------------------------------------------
# Creation
# ----------------------------------------------------------------------------

def _money(value: Any, field: str) -> Decimal:
    try:
        return Decimal(str(value if value not in (None, "") else 0)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationFailed(f"{field} must be a number") from exc


def _customization_text(raw: Any) -> str:
    if not raw:
        return ""
    if isinstance(raw, (list, tuple)):
        return ", ".join(str(x) for x in raw)
    if isinstance(raw, dict):
        return json.dumps(raw)
    return str(raw)


def _line_items(raw_items: Any) -> list[dict[str, Any]]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationFailed("Order must contain at least one item")
    lines = []
    for raw in raw_items:
        if not isinstance(raw, dict) or not (raw.get("name") or "").strip():
            raise ValidationFailed("Item name is required")
        try:
            quantity = int(raw.get("quantity") or 0)
        except (TypeError, ValueError):
            quantity = 0
        if quantity < 1:
            raise ValidationFailed("Item quantity must be at least 1")
        lines.append({
            "menu_item": raw.get("menuItem") or None,
            "name": raw["name"].strip(),
            "price": str(_money(raw.get("price"), "price")),
            "quantity": quantity,
            "image": raw.get("image") or "placeholder.jpg",
            "customization": _customization_text(raw.get("customization")),
        })
    return lines


def create_order(user, data: dict[str, Any]) -> Order:
    items = _line_items(data.get("items"))
    restaurant_id = str(data.get("restaurant") or "").strip()
    if not restaurant_id:
        raise ValidationFailed("Restaurant ID is required")
    address = data.get("deliveryAddress")
    if not isinstance(address, dict) or not address.get("street") or not address.get("city"):
        raise ValidationFailed("Valid delivery address is required")

    payment_method = data.get("paymentMethod") or "COD"
    if payment_method not in dict(Order.PAYMENT_METHOD_CHOICES):
        raise ValidationFailed("invalid payment method")
    raw_eta = data.get("estimatedDeliveryTime")
    eta = parse_datetime(raw_eta) if isinstance(raw_eta, str) else None
    try:
        duration = max(1, int(data.get("deliveryDuration") or 30))
        distance = float(data.get("deliveryDistance") or 0)
    except (TypeError, ValueError) as exc:
        raise ValidationFailed("invalid delivery distance or duration") from exc

    with transaction.atomic():
        order = Order(
            customer=user,
            customer_name=(data.get("customerName") or user.get_full_name() or user.get_username())[:160],
            customer_phone=(data.get("customerPhone") or "")[:40],
            restaurant_id=restaurant_id,
            restaurant_name=(data.get("restaurantName") or "Restaurant")[:160],
            restaurant_image=data.get("restaurantImage") or "placeholder.jpg",
            restaurant_address=(data.get("restaurantAddress") or "")[:255],
            items_json=items,
            delivery_address=address,
            subtotal=_money(data.get("subtotal"), "subtotal"),
            delivery_fee=_money(data.get("deliveryFee"), "deliveryFee"),
            taxes=_money(data.get("taxes"), "taxes"),
            discount=_money(data.get("discount"), "discount"),
            total=_money(data.get("total"), "total"),
            payment_method=payment_method,
            payment_status="Pending" if payment_method == "COD" else "Paid",
            instructions=data.get("instructions") or "",
            estimated_delivery_time=eta or timezone.now() + dt.timedelta(minutes=duration),
            delivery_distance=distance,
            delivery_duration=duration,
            status=Order.PENDING,
        )
        if getattr(settings, "DELIVERY_OTP_REQUIRED", False):
            order.delivery_otp = generate_otp()
        order.save()
        enqueue(
            target="restaurant",
            method="POST",
            path="/api/orders/receive",
            payload={
                "orderId": str(order.id),
                "orderNumber": order.order_number,
                "customerId": str(user.pk),
                "customerName": order.customer_name or "Customer",
                "customerPhone": order.customer_phone,
                "restaurantId": order.restaurant_id,
                "items": data.get("items"),
                "deliveryAddress": address,
                "subtotal": str(order.subtotal),
                "deliveryFee": str(order.delivery_fee),
                "taxes": str(order.taxes),
                "total": str(order.total),
                "paymentMethod": order.payment_method,
                "instructions": order.instructions,
                "orderTime": order.created_at.isoformat(),
            },
            idempotency_key=f"order:{order.id}:restaurant-receive",
        )
    log.info("Order %s created for customer %s (restaurant %s)", order.order_number, user.pk, restaurant_id)
    return order


# ----------------------------------------------------------------------------
# Status transitions
# ----------------------------------------------------------------------------

def delivery_snapshot(order: Order) -> dict[str, Any]:
    payload = {
        "orderId": str(order.id),
        "orderNumber": order.order_number,
        "restaurant": order.restaurant_id,
        "restaurantName": order.restaurant_name,
        "restaurantLocation": {"address": order.restaurant_address or "", "coordinates": []},
        "customer": str(order.customer_id),
        "customerName": order.customer_name or "Customer",
        "customerPhone": order.customer_phone or "",
        "deliveryAddress": order.delivery_address,
        "orderAmount": str(order.total),
        "deliveryFee": str(order.delivery_fee or 0),
        "distance": order.delivery_distance or 0,
        "estimatedDeliveryTime": order.delivery_duration or 30,
        "paymentMethod": "cash" if order.payment_method == "COD" else "online",
    }
    if order.delivery_otp:
        payload["deliveryOTP"] = order.delivery_otp
    return payload


def _queue_downstream(order: Order, previous: str) -> None:
    status = order.status
    if status == Order.READY and previous != Order.READY:
        log.info("Notifying delivery-backend about Ready order %s", order.order_number)
        enqueue(
            target="delivery",
            method="POST",
            path="/api/delivery/orders/create",
            payload=delivery_snapshot(order),
            idempotency_key=f"order:{order.id}:delivery-create",
        )
    if status in RESTAURANT_SYNC_STATUSES:
        enqueue(
            target="restaurant",
            method="PUT",
            path="/api/orders/receive-status-update",
            payload={"orderId": str(order.id), "status": status},
            idempotency_key=f"order:{order.id}:restaurant-status:{status}",
        )
    if status == Order.CANCELLED and previous in (Order.READY, Order.OUT_FOR_DELIVERY):
        enqueue(
            target="delivery",
            method="POST",
            path="/api/delivery/orders/cancel",
            payload={"orderId": str(order.id), "reason": order.cancellation_reason},
            idempotency_key=f"order:{order.id}:delivery-cancel",
        )


def _parse_when(value: Any, field: str):
    if not value:
        return None
    if not isinstance(value, str):
        raise ValidationFailed(f"{field} must be an ISO 8601 string")
    try:
        return parse_datetime(value) or timezone.now()
    except ValueError as exc:
        raise ValidationFailed(f"{field} is not a valid date") from exc


def _reason(value: Any, field: str) -> str:
    if value in (None, ""):
        return ""
    if not isinstance(value, str):
        raise ValidationFailed(f"{field} must be a string")
    return value[:200]


def update_status(
    order_id,
    raw_status: Any,
    *,
    source: str,
    accepted_at: Any = None,
    rejected_at: Any = None,
    rejection_reason: str | None = None,
    cancellation_reason: str | None = None,
    cancelled_by: str | None = None,
) -> Order:
    """Apply a status change, then fan it out.

    Raises Order.DoesNotExist or an OrderError subclass before
    anything is written. Downstream notifications are queued in the same
    transaction as the write and never fail the call.
    """
    status = normalize_status(raw_status)
    accepted_at = _parse_when(accepted_at, "acceptedAt")
    rejected_at = _parse_when(rejected_at, "rejectedAt")
    rejection_reason = _reason(rejection_reason, "rejectionReason")
    cancellation_reason = _reason(cancellation_reason, "cancellationReason")
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order_id)
        previous = order.status
        if not can_transition(previous, status):
            raise InvalidTransition(previous, status)

        extra: list[str] = []
        if accepted_at:
            order.accepted_at = accepted_at
            extra.append("accepted_at")
        if rejected_at:
            order.rejected_at = rejected_at
            extra.append("rejected_at")
        if rejection_reason:
            order.rejection_reason = rejection_reason
            extra.append("rejection_reason")
        if status == Order.CANCELLED and previous != Order.CANCELLED:
            order.cancelled_at = timezone.now()
            order.cancellation_reason = cancellation_reason
            order.cancelled_by = cancelled_by or source.capitalize()
            extra += ["cancelled_at", "cancellation_reason", "cancelled_by"]
        order.set_status(status, source=source, note=rejection_reason or cancellation_reason or "", extra_fields=tuple(extra))
        _queue_downstream(order, previous)

    log.info("Order %s status %s -> %s (source=%s)", order.order_number, previous, status, source)
    emit(
        "orderStatusUpdated",
        {"orderId": str(order.id), "status": status, "updatedOrder": serialize_order(order)},
        room=order_room(order.id),
    )
    return order


def cancel_order(order: Order, *, reason: str | None = None) -> Order:
    if order.status in Order.TERMINAL_STATUSES:
        raise ValidationFailed("This order cannot be cancelled")
    return update_status(
        order.pk,
        Order.CANCELLED,
        source="customer",
        cancellation_reason=reason or "Cancelled by customer",
        cancelled_by="Customer",
    )


def rate_order(order: Order, *, rating: Any, review: str | None = None) -> Order:
    try:
        value = int(rating)
    except (TypeError, ValueError):
        value = 0
    if value < 1 or value > 5:
        raise ValidationFailed("Rating must be between 1 and 5")
    if order.status != Order.DELIVERED:
        raise ValidationFailed("Can only rate delivered orders")
    order.rating = value
    order.review = review or ""
    order.review_date = timezone.now()
    order.save(update_fields=["rating", "review", "review_date", "updated_at"])
    return order
