from __future__ import annotations

from typing import Any

from .models import Courier, DeliveryOrder


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def serialize_delivery_order(order: DeliveryOrder) -> dict[str, Any]:
    return {
        "id": str(order.id),
        "orderId": str(order.order_id),
        "orderNumber": order.order_number,
        "courier": str(order.courier_id) if order.courier_id else None,
        "restaurant": order.restaurant_id,
        "restaurantName": order.restaurant_name,
        "restaurantLocation": order.restaurant_location,
        "customer": order.customer_id,
        "customerName": order.customer_name,
        "customerPhone": order.customer_phone,
        "deliveryAddress": order.delivery_address,
        "orderAmount": str(order.order_amount),
        "deliveryFee": str(order.delivery_fee),
        "distance": order.distance,
        "estimatedDeliveryTime": order.estimated_delivery_time,
        "actualDeliveryTime": order.actual_delivery_time,
        "status": order.status,
        "assignedAt": _iso(order.assigned_at),
        "acceptedAt": _iso(order.accepted_at),
        "rejectedAt": _iso(order.rejected_at),
        "pickedUpAt": _iso(order.picked_up_at),
        "deliveredAt": _iso(order.delivered_at),
        "rejectionReason": order.rejection_reason,
        "isPaid": order.is_paid,
        "paymentMethod": order.payment_method,
        "requiresOTP": bool(order.delivery_otp),
        "source": order.source,
        "createdAt": _iso(order.created_at),
        "updatedAt": _iso(order.updated_at),
    }


def new_order_summary(order: DeliveryOrder) -> dict[str, Any]:
    """Payload of the ``new:order`` broadcast; no customer contact details."""
    return {
        "orderId": str(order.id),
        "orderNumber": order.order_number,
        "restaurantName": order.restaurant_name,
        "deliveryAddress": order.delivery_address,
        "orderAmount": str(order.order_amount),
        "deliveryFee": str(order.delivery_fee),
        "distance": order.distance,
    }


def serialize_courier(courier: Courier) -> dict[str, Any]:
    return {
        "id": str(courier.id),
        "name": courier.user.get_full_name() or courier.user.get_username(),
        "phone": courier.phone,
        "vehicleType": courier.vehicle_type,
        "vehicleNumber": courier.vehicle_number,
        "isOnline": courier.is_online,
        "isAvailable": courier.is_available,
        "currentOrder": str(courier.current_order_id) if courier.current_order_id else None,
        "completedOrders": courier.completed_orders,
        "totalEarnings": str(courier.total_earnings),
        "rating": str(courier.rating),
    }
