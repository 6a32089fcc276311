import logging
from typing import Any

import requests
from celery import shared_task
from django.conf import settings
from django.core.cache import cache

from apps.common.http import call_service
from .services import ValidationFailed, create_delivery_order

log = logging.getLogger(__name__)

READY_POLL_LOCK = "delivery:poll-ready-orders"


def snapshot_from_order(data: dict[str, Any]) -> dict[str, Any]:
    """Map a customer-backend order document to the creation payload."""
    return {
        "orderId": data.get("id"),
        "orderNumber": data.get("orderNumber"),
        "restaurant": data.get("restaurant"),
        "restaurantName": data.get("restaurantName"),
        "restaurantLocation": {"address": data.get("restaurantAddress") or "", "coordinates": []},
        "customer": data.get("customer"),
        "customerName": data.get("customerName") or "Customer",
        "customerPhone": data.get("customerPhone") or "",
        "deliveryAddress": data.get("deliveryAddress"),
        "orderAmount": data.get("total"),
        "deliveryFee": data.get("deliveryFee") or 0,
        "distance": data.get("deliveryDistance") or 0,
        "estimatedDeliveryTime": data.get("deliveryDuration") or 30,
        "paymentMethod": "cash" if data.get("paymentMethod") == "COD" else "online",
        "deliveryOTP": data.get("deliveryOTP"),
    }


def _fetch_ready_orders() -> list[dict[str, Any]] | None:
    try:
        resp = call_service(
            "customer", "GET", "/api/orders/internal/ready", timeout=settings.READY_POLL_TIMEOUT
        )
        resp.raise_for_status()
        body = resp.json()
    except requests.ConnectionError:
        # customer-backend down or restarting; next tick retries
        log.debug("customer-backend unreachable, skipping ready-order poll")
        return None
    except (requests.RequestException, ValueError):
        log.exception("Ready-order poll failed")
        return None
    orders = body.get("data") if isinstance(body, dict) else None
    if not isinstance(orders, list):
        log.warning("Unexpected ready-order response: %r", body)
        return None
    return orders


def poll_once() -> dict[str, int]:
    summary = {"fetched": 0, "created": 0}
    orders = _fetch_ready_orders()
    if orders is None:
        return summary
    summary["fetched"] = len(orders)
    for data in orders:
        if not isinstance(data, dict):
            continue
        try:
            order, created = create_delivery_order(snapshot_from_order(data), source="poller")
        except ValidationFailed as e:
            log.warning("Skipping ready order %s: %s", data.get("id"), e)
            continue
        if created:
            summary["created"] += 1
            log.info("Poller created delivery order %s for %s", order.pk, order.order_number)
    return summary


@shared_task
def poll_ready_orders():
    """Create delivery records for Ready orders the direct callback missed."""
    lock_ttl = max(int(settings.READY_POLL_INTERVAL) * 3, 30)
    if not cache.add(READY_POLL_LOCK, "1", timeout=lock_ttl):
        log.debug("Previous ready-order poll still running")
        return {"fetched": 0, "created": 0, "skipped": True}
    try:
        return poll_once()
    finally:
        cache.delete(READY_POLL_LOCK)
