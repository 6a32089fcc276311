from decimal import Decimal

import pytest
from django.urls import reverse

from apps.delivery.models import DeliveryOrder
from apps.delivery.tasks import poll_ready_orders
from apps.orders.models import Order
from apps.outbox.api import redispatch
from apps.outbox.models import OutboundCall
from conftest import post_json, put_json


def advance(client, order, *statuses):
    for status in statuses:
        resp = put_json(client, reverse("orders:update_status", args=[order.id]), {"status": status})
        assert resp.status_code == 200, resp.content


@pytest.mark.django_db
@pytest.mark.parametrize("otp", [None, "2468"])
def test_order_travels_from_pending_to_delivered(
    client, courier_client, courier, make_order, network, emitted, django_capture_on_commit_callbacks, otp
):
    order = make_order(total="500.00", delivery_fee="40.00", otp=otp)
    assert order.status == Order.PENDING

    with django_capture_on_commit_callbacks(execute=True):
        advance(client, order, "Accepted", "Preparing", "Ready")

    delivery = DeliveryOrder.objects.get(order_id=order.id)
    assert delivery.order_amount == Decimal("500.00")
    assert delivery.status == DeliveryOrder.READY_FOR_PICKUP
    assert delivery.delivery_otp == otp
    assert "new:order" in [e[0] for e in emitted]

    with django_capture_on_commit_callbacks(execute=True):
        assert post_json(courier_client, reverse("delivery:accept_order", args=[delivery.id])).status_code == 200
    delivery.refresh_from_db()
    courier.refresh_from_db()
    assert delivery.status == DeliveryOrder.ACCEPTED
    assert courier.current_order_id == delivery.pk

    with django_capture_on_commit_callbacks(execute=True):
        assert post_json(courier_client, reverse("delivery:pickup_order", args=[delivery.id])).status_code == 200
    order.refresh_from_db()
    assert order.status == Order.OUT_FOR_DELIVERY

    with django_capture_on_commit_callbacks(execute=True):
        assert post_json(courier_client, reverse("delivery:start_transit", args=[delivery.id])).status_code == 200
        resp = post_json(courier_client, reverse("delivery:complete_order", args=[delivery.id]), {"otp": otp})
    assert resp.status_code == 200

    delivery.refresh_from_db()
    courier.refresh_from_db()
    order.refresh_from_db()
    assert delivery.status == DeliveryOrder.DELIVERED
    assert order.status == Order.DELIVERED
    assert courier.completed_orders == 1
    assert courier.total_earnings == Decimal("40.00")
    assert courier.current_order_id is None

    sources = dict(order.status_changes.values_list("status", "source"))
    assert sources[Order.OUT_FOR_DELIVERY] == "delivery"
    assert sources[Order.DELIVERED] == "delivery"
    restaurant_updates = [c.json["status"] for c in network.to("restaurant.test", "/api/orders/receive-status-update")]
    assert sorted(restaurant_updates) == ["Delivered", "OutForDelivery"]
    room_events = [d["status"] for e, d, room in emitted if e == "orderStatusUpdated"]
    assert room_events == ["Accepted", "Preparing", "Ready", "OutForDelivery", "Delivered"]


@pytest.mark.django_db
def test_poller_recovers_missed_ready_callback(client, make_order, network, django_capture_on_commit_callbacks):
    order = make_order(status=Order.PREPARING)
    network.down.add("delivery.test")

    with django_capture_on_commit_callbacks(execute=True):
        advance(client, order, "Ready")

    assert not DeliveryOrder.objects.exists()
    order.refresh_from_db()
    assert order.status == Order.READY

    network.down.clear()
    summary = poll_ready_orders()

    assert summary["created"] == 1
    delivery = DeliveryOrder.objects.get()
    assert delivery.order_id == order.id
    assert delivery.status == DeliveryOrder.READY_FOR_PICKUP
    assert delivery.source == "poller"


@pytest.mark.django_db
def test_restaurant_skipping_steps_still_reaches_couriers(client, make_order, emitted, django_capture_on_commit_callbacks):
    order = make_order(status=Order.ACCEPTED)

    with django_capture_on_commit_callbacks(execute=True):
        advance(client, order, "Ready")

    delivery = DeliveryOrder.objects.get(order_id=order.id)
    assert delivery.status == DeliveryOrder.READY_FOR_PICKUP
    assert [e[0] for e in emitted].count("new:order") == 1


@pytest.mark.django_db
def test_cancel_overtaking_delivery_create_keeps_order_off_the_board(
    customer_client, make_order, network, emitted, django_capture_on_commit_callbacks
):
    order = make_order(status=Order.PREPARING)
    network.down.add("/api/delivery/orders/create")

    with django_capture_on_commit_callbacks(execute=True):
        advance(customer_client, order, "Ready")
        resp = customer_client.patch(reverse("orders:cancel", args=[order.id]), data="{}", content_type="application/json")
    assert resp.status_code == 200
    cancel_call = OutboundCall.objects.get(idempotency_key=f"order:{order.id}:delivery-cancel")
    assert cancel_call.status == "sent"

    network.down.clear()
    create_call = OutboundCall.objects.get(idempotency_key=f"order:{order.id}:delivery-create")
    with django_capture_on_commit_callbacks(execute=True):
        redispatch(create_call)

    create_call.refresh_from_db()
    assert create_call.status == "sent"
    assert create_call.response_status == 200
    assert DeliveryOrder.objects.get(order_id=order.id).status == DeliveryOrder.CANCELLED
    assert "new:order" not in [e[0] for e in emitted]
