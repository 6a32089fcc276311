from __future__ import annotations

from typing import Any

from .models import Order


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def serialize_order(order: Order) -> dict[str, Any]:
    return {
        "id": str(order.id),
        "orderNumber": order.order_number,
        "customer": str(order.customer_id),
        "customerName": order.customer_name,
        "customerPhone": order.customer_phone,
        "restaurant": order.restaurant_id,
        "restaurantName": order.restaurant_name,
        "restaurantImage": order.restaurant_image,
        "restaurantAddress": order.restaurant_address,
        "items": order.items_json,
        "deliveryAddress": order.delivery_address,
        "subtotal": str(order.subtotal),
        "deliveryFee": str(order.delivery_fee),
        "taxes": str(order.taxes),
        "discount": str(order.discount),
        "total": str(order.total),
        "paymentMethod": order.payment_method,
        "paymentStatus": order.payment_status,
        "status": order.status,
        "acceptedAt": _iso(order.accepted_at),
        "rejectedAt": _iso(order.rejected_at),
        "rejectionReason": order.rejection_reason,
        "estimatedDeliveryTime": _iso(order.estimated_delivery_time),
        "deliveryDistance": order.delivery_distance,
        "deliveryDuration": order.delivery_duration,
        "instructions": order.instructions,
        "cancellationReason": order.cancellation_reason,
        "cancelledAt": _iso(order.cancelled_at),
        "cancelledBy": order.cancelled_by,
        "rating": order.rating,
        "review": order.review,
        "reviewDate": _iso(order.review_date),
        "createdAt": _iso(order.created_at),
        "updatedAt": _iso(order.updated_at),
    }


def serialize_order_for_owner(order: Order) -> dict[str, Any]:
    """Includes the delivery OTP; only for the order owner and internal callers."""
    data = serialize_order(order)
    data["deliveryOTP"] = order.delivery_otp
    return data
