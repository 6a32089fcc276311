from __future__ import annotations

import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.outbox.api import enqueue
from .models import Courier, DeliveryOrder
from .sockets import broadcast_new_order, notify_courier

log = logging.getLogger(__name__)

DELIVERY_TRANSITIONS: dict[str, set[str]] = {
    DeliveryOrder.READY_FOR_PICKUP: {DeliveryOrder.ACCEPTED, DeliveryOrder.CANCELLED},
    # back to ready_for_pickup when the assigned courier rejects
    DeliveryOrder.ACCEPTED: {
        DeliveryOrder.PICKED_UP,
        DeliveryOrder.READY_FOR_PICKUP,
        DeliveryOrder.DELIVERED,
        DeliveryOrder.CANCELLED,
    },
    DeliveryOrder.PICKED_UP: {DeliveryOrder.IN_TRANSIT, DeliveryOrder.DELIVERED, DeliveryOrder.CANCELLED},
    DeliveryOrder.IN_TRANSIT: {DeliveryOrder.DELIVERED, DeliveryOrder.CANCELLED},
    DeliveryOrder.DELIVERED: set(),
    DeliveryOrder.CANCELLED: set(),
}


class DeliveryError(Exception):
    status_code = 400


class ValidationFailed(DeliveryError):
    pass


class StateConflict(DeliveryError):
    pass


class InvalidTransition(StateConflict):
    def __init__(self, current: str, target: str):
        super().__init__(f"invalid transition: {current} -> {target}")
        self.current = current
        self.target = target


class NotAssigned(DeliveryError):
    status_code = 403

    def __init__(self, message: str = "This order is not assigned to you"):
        super().__init__(message)


class InvalidOTP(DeliveryError):
    def __init__(self, message: str = "Invalid OTP"):
        super().__init__(message)


def _move(order: DeliveryOrder, target: str) -> None:
    if target not in DELIVERY_TRANSITIONS.get(order.status, set()):
        raise InvalidTransition(order.status, target)
    order.status = target


def _money(value: Any, field: str) -> Decimal:
    try:
        return Decimal(str(value if value not in (None, "") else 0)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationFailed(f"{field} must be a number") from exc


def _distance(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError) as exc:
        raise ValidationFailed("distance must be a number") from exc


def _minutes(value: Any) -> int | None:
    try:
        return max(0, int(value)) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


# ----------------------------------------------------------------------------
# Creation (callback and poller)
# ----------------------------------------------------------------------------

def create_delivery_order(payload: dict[str, Any], *, source: str = "callback") -> tuple[DeliveryOrder, bool]:
    """Create the delivery record for a Ready customer order.

    Returns ``(order, created)``. A record that already exists for the same
    ``orderId`` is returned untouched, including when a concurrent insert
    wins the unique constraint.
    """
    order_ref = payload.get("orderId")
    restaurant = payload.get("restaurant")
    customer = payload.get("customer")
    if not order_ref or not restaurant or not customer:
        raise ValidationFailed("Missing required fields")
    try:
        order_id = uuid.UUID(str(order_ref))
    except ValueError as exc:
        raise ValidationFailed("invalid orderId") from exc

    existing = DeliveryOrder.objects.filter(order_id=order_id).first()
    if existing:
        log.info("Delivery order for %s already exists (%s)", order_id, existing.status)
        return existing, False

    location = payload.get("restaurantLocation")
    address = payload.get("deliveryAddress")
    payment_method = payload.get("paymentMethod")
    order = DeliveryOrder(
        order_id=order_id,
        order_number=str(payload.get("orderNumber") or "")[:24],
        restaurant_id=str(restaurant),
        restaurant_name=str(payload.get("restaurantName") or "")[:160],
        restaurant_location=location if isinstance(location, dict) else {},
        customer_id=str(customer),
        customer_name=str(payload.get("customerName") or "")[:160],
        customer_phone=str(payload.get("customerPhone") or "")[:40],
        delivery_address=address if isinstance(address, dict) else {},
        order_amount=_money(payload.get("orderAmount"), "orderAmount"),
        delivery_fee=_money(payload.get("deliveryFee"), "deliveryFee"),
        distance=_distance(payload.get("distance")),
        estimated_delivery_time=_minutes(payload.get("estimatedDeliveryTime")),
        delivery_otp=payload.get("deliveryOTP") or None,
        payment_method=payment_method if payment_method in ("cash", "online") else "online",
        is_paid=payment_method == "online",
        status=DeliveryOrder.READY_FOR_PICKUP,
        source=source,
    )
    try:
        with transaction.atomic():
            order.save()
    except IntegrityError:
        # Lost the race on order_id
        existing = DeliveryOrder.objects.filter(order_id=order_id).first()
        if existing:
            log.info("Concurrent create for %s resolved to existing record", order_id)
            return existing, False
        raise

    log.info("Delivery order %s created for %s (source=%s)", order.pk, order.order_number or order_id, source)
    broadcast_new_order(order)
    return order, True


def _cancelled_placeholder(order_id: uuid.UUID, reason: str) -> DeliveryOrder | None:
    """Record a cancel that overtook the create call.

    The row holds the order_id, so a late create resolves to it instead of
    publishing the order to couriers. Returns None when a create won the race.
    """
    order = DeliveryOrder(
        order_id=order_id,
        restaurant_id="",
        customer_id="",
        order_amount=Decimal("0"),
        status=DeliveryOrder.CANCELLED,
        cancelled_at=timezone.now(),
        cancellation_reason=reason,
    )
    try:
        with transaction.atomic():
            order.save()
    except IntegrityError:
        return None
    log.info("Cancel for %s arrived before its delivery record; stored cancelled placeholder", order_id)
    return order


def cancel_delivery_order(order_id, *, reason: Any = None) -> DeliveryOrder:
    """Cancel the delivery record of a customer order cancelled after Ready."""
    try:
        order_id = uuid.UUID(str(order_id))
    except ValueError as exc:
        raise ValidationFailed("invalid orderId") from exc
    reason = str(reason or "")[:200]
    if not DeliveryOrder.objects.filter(order_id=order_id).exists():
        placeholder = _cancelled_placeholder(order_id, reason)
        if placeholder:
            return placeholder
    with transaction.atomic():
        order = DeliveryOrder.objects.select_for_update().get(order_id=order_id)
        if order.status == DeliveryOrder.CANCELLED:
            return order
        if order.status == DeliveryOrder.DELIVERED:
            raise StateConflict("Delivered orders cannot be cancelled")
        courier_id = order.courier_id
        _move(order, DeliveryOrder.CANCELLED)
        order.cancelled_at = timezone.now()
        order.cancellation_reason = reason
        order.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])
        if courier_id:
            Courier.objects.filter(pk=courier_id, current_order=order).update(
                current_order=None, is_available=True, updated_at=timezone.now()
            )

    log.info("Delivery order %s cancelled", order.pk)
    if courier_id:
        notify_courier(courier_id, "order:cancelled", {"orderId": str(order.pk), "reason": order.cancellation_reason})
    return order


# ----------------------------------------------------------------------------
# Courier actions
# ----------------------------------------------------------------------------

def _notify_customer_backend(order: DeliveryOrder, status: str) -> None:
    enqueue(
        target="customer",
        method="PUT",
        path=f"/api/orders/{order.order_id}/update-status",
        payload={"status": status, "source": "delivery"},
        idempotency_key=f"delivery:{order.order_id}:customer-status:{status}",
    )


def _owned(courier: Courier, delivery_id) -> DeliveryOrder:
    order = DeliveryOrder.objects.select_for_update().get(pk=delivery_id)
    if order.courier_id != courier.pk:
        raise NotAssigned()
    return order


def accept_order(courier: Courier, delivery_id) -> DeliveryOrder:
    now = timezone.now()
    with transaction.atomic():
        courier = Courier.objects.select_for_update().get(pk=courier.pk)
        if courier.current_order_id:
            raise StateConflict("You already have an active order")
        order = DeliveryOrder.objects.select_for_update().get(pk=delivery_id)
        if order.status != DeliveryOrder.READY_FOR_PICKUP:
            raise StateConflict("Order is not available for pickup")
        if order.courier_id:
            raise StateConflict("Order already assigned to another courier")
        _move(order, DeliveryOrder.ACCEPTED)
        order.courier = courier
        order.assigned_at = now
        order.accepted_at = now
        order.save(update_fields=["status", "courier", "assigned_at", "accepted_at", "updated_at"])
        courier.current_order = order
        courier.is_available = False
        courier.save(update_fields=["current_order", "is_available", "updated_at"])
    log.info("Courier %s accepted delivery %s", courier.pk, order.pk)
    return order


def reject_order(courier: Courier, delivery_id, *, reason: str | None = None) -> DeliveryOrder:
    with transaction.atomic():
        order = DeliveryOrder.objects.select_for_update().get(pk=delivery_id)
        if order.courier_id and order.courier_id != courier.pk:
            raise NotAssigned("Order is assigned to another courier")
        fields = ["rejected_at", "rejection_reason", "updated_at"]
        released = order.courier_id == courier.pk
        if released:
            _move(order, DeliveryOrder.READY_FOR_PICKUP)
            order.courier = None
            order.assigned_at = None
            order.accepted_at = None
            fields += ["status", "courier", "assigned_at", "accepted_at"]
            Courier.objects.filter(pk=courier.pk).update(
                current_order=None, is_available=True, updated_at=timezone.now()
            )
        order.rejected_at = timezone.now()
        order.rejection_reason = (reason or "No reason provided")[:200]
        order.save(update_fields=fields)
    log.info("Courier %s rejected delivery %s", courier.pk, order.pk)
    if released:
        broadcast_new_order(order)
    return order


def pickup_order(courier: Courier, delivery_id) -> DeliveryOrder:
    with transaction.atomic():
        order = _owned(courier, delivery_id)
        if order.status != DeliveryOrder.ACCEPTED:
            raise StateConflict("Order cannot be picked up at this stage")
        _move(order, DeliveryOrder.PICKED_UP)
        order.picked_up_at = timezone.now()
        order.save(update_fields=["status", "picked_up_at", "updated_at"])
        _notify_customer_backend(order, "OutForDelivery")
    log.info("Courier %s picked up delivery %s", courier.pk, order.pk)
    return order


def start_transit(courier: Courier, delivery_id) -> DeliveryOrder:
    with transaction.atomic():
        order = _owned(courier, delivery_id)
        if order.status != DeliveryOrder.PICKED_UP:
            raise StateConflict("Order must be picked up first")
        _move(order, DeliveryOrder.IN_TRANSIT)
        order.save(update_fields=["status", "updated_at"])
    return order


def complete_order(courier: Courier, delivery_id, *, otp: Any = None) -> DeliveryOrder:
    with transaction.atomic():
        order = _owned(courier, delivery_id)
        if order.status not in DeliveryOrder.ACTIVE_STATUSES:
            raise StateConflict("Order cannot be completed at this stage")
        if order.delivery_otp and str(otp or "").strip() != order.delivery_otp:
            raise InvalidOTP()
        now = timezone.now()
        _move(order, DeliveryOrder.DELIVERED)
        order.delivered_at = now
        if order.accepted_at:
            order.actual_delivery_time = int((now - order.accepted_at).total_seconds() // 60)
        order.save(update_fields=["status", "delivered_at", "actual_delivery_time", "updated_at"])
        Courier.objects.filter(pk=courier.pk).update(
            completed_orders=F("completed_orders") + 1,
            total_earnings=F("total_earnings") + order.delivery_fee,
            current_order=None,
            is_available=True,
            updated_at=now,
        )
        _notify_customer_backend(order, "Delivered")
    log.info("Courier %s delivered %s (earned %s)", courier.pk, order.pk, order.delivery_fee)
    return order


# ----------------------------------------------------------------------------
# Courier profile
# ----------------------------------------------------------------------------

def toggle_online(courier: Courier) -> Courier:
    with transaction.atomic():
        courier = Courier.objects.select_for_update().get(pk=courier.pk)
        courier.is_online = not courier.is_online
        if not courier.is_online:
            courier.is_available = False
        courier.save(update_fields=["is_online", "is_available", "updated_at"])
    return courier


def toggle_availability(courier: Courier) -> Courier:
    with transaction.atomic():
        courier = Courier.objects.select_for_update().get(pk=courier.pk)
        if not courier.is_online:
            raise StateConflict("You must be online to change availability")
        if courier.current_order_id:
            raise StateConflict("Cannot change availability while on active delivery")
        courier.is_available = not courier.is_available
        courier.save(update_fields=["is_available", "updated_at"])
    return courier


def update_location(courier: Courier, *, latitude: Any, longitude: Any) -> Courier:
    if latitude in (None, "") or longitude in (None, ""):
        raise ValidationFailed("Latitude and longitude are required")
    try:
        lat, lng = float(latitude), float(longitude)
    except (TypeError, ValueError) as exc:
        raise ValidationFailed("Latitude and longitude must be numbers") from exc
    courier.latitude = lat
    courier.longitude = lng
    courier.location_updated_at = timezone.now()
    courier.save(update_fields=["latitude", "longitude", "location_updated_at", "updated_at"])
    return courier
