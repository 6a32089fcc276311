import uuid

import pytest
from django.urls import reverse

from apps.delivery import services
from apps.delivery.models import DeliveryOrder
from conftest import post_json


def creation_payload(**overrides):
    data = {
        "orderId": str(uuid.uuid4()),
        "orderNumber": "ORD-20260105-A1B2C3",
        "restaurant": "rest-1",
        "restaurantName": "Spice Route",
        "restaurantLocation": {"address": "12 MG Road", "coordinates": []},
        "customer": "cust-1",
        "customerName": "Ana Souza",
        "customerPhone": "+919800000001",
        "deliveryAddress": {"street": "4 Lake View", "city": "Bengaluru"},
        "orderAmount": "500.00",
        "deliveryFee": "40.00",
        "distance": 3.2,
        "estimatedDeliveryTime": 35,
        "paymentMethod": "cash",
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
def test_create_delivery_order_and_broadcast(client, emitted):
    payload = creation_payload()

    resp = post_json(client, reverse("delivery:create_order"), payload)

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["status"] == "ready_for_pickup"
    assert data["courier"] is None
    assert data["orderAmount"] == "500.00"
    order = DeliveryOrder.objects.get()
    assert str(order.order_id) == payload["orderId"]
    assert order.source == "callback"
    assert order.payment_method == "cash"

    assert len(emitted) == 1
    event, summary, room = emitted[0]
    assert event == "new:order"
    assert room is None
    assert summary == {
        "orderId": str(order.id),
        "orderNumber": "ORD-20260105-A1B2C3",
        "restaurantName": "Spice Route",
        "deliveryAddress": {"street": "4 Lake View", "city": "Bengaluru"},
        "orderAmount": "500.00",
        "deliveryFee": "40.00",
        "distance": 3.2,
    }


@pytest.mark.django_db
def test_repeated_creation_is_idempotent(client, emitted):
    payload = creation_payload()

    first = post_json(client, reverse("delivery:create_order"), payload)
    second = post_json(client, reverse("delivery:create_order"), payload)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["data"]["id"] == first.json()["data"]["id"]
    assert DeliveryOrder.objects.count() == 1
    assert [e[0] for e in emitted] == ["new:order"]


@pytest.mark.django_db
@pytest.mark.parametrize("missing", ["orderId", "restaurant", "customer"])
def test_creation_requires_identifiers(client, missing):
    resp = post_json(client, reverse("delivery:create_order"), creation_payload(**{missing: None}))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing required fields"
    assert not DeliveryOrder.objects.exists()


@pytest.mark.django_db
def test_concurrent_insert_resolves_to_existing_record(make_delivery, monkeypatch, emitted):
    existing = make_delivery()
    real_filter = DeliveryOrder.objects.filter
    seen = {"n": 0}

    def racing_filter(*args, **kwargs):
        # first lookup misses, as if the other writer had not committed yet
        seen["n"] += 1
        qs = real_filter(*args, **kwargs)
        return qs.none() if seen["n"] == 1 else qs

    monkeypatch.setattr(DeliveryOrder.objects, "filter", racing_filter)

    order, created = services.create_delivery_order(creation_payload(orderId=str(existing.order_id)))

    assert created is False
    assert order.pk == existing.pk
    assert DeliveryOrder.objects.count() == 1
    assert emitted == []


@pytest.mark.django_db
def test_internal_cancel_frees_courier(client, make_delivery, courier, emitted):
    delivery = make_delivery(status=DeliveryOrder.PICKED_UP, courier=courier)
    courier.current_order = delivery
    courier.is_available = False
    courier.save()

    resp = post_json(client, reverse("delivery:cancel_order"), {"orderId": str(delivery.order_id), "reason": "Customer cancelled"})

    assert resp.status_code == 200
    delivery.refresh_from_db()
    courier.refresh_from_db()
    assert delivery.status == DeliveryOrder.CANCELLED
    assert delivery.cancellation_reason == "Customer cancelled"
    assert courier.current_order is None
    assert courier.is_available is True
    assert emitted[-1][0] == "order:cancelled"
    assert emitted[-1][2] == f"delivery:{courier.pk}"


@pytest.mark.django_db
def test_cancel_before_create_blocks_late_create(client, emitted):
    order_id = str(uuid.uuid4())

    resp = post_json(client, reverse("delivery:cancel_order"), {"orderId": order_id, "reason": "Customer cancelled"})

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == DeliveryOrder.CANCELLED

    resp = post_json(client, reverse("delivery:create_order"), creation_payload(orderId=order_id))

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == DeliveryOrder.CANCELLED
    record = DeliveryOrder.objects.get()
    assert record.status == DeliveryOrder.CANCELLED
    assert record.cancellation_reason == "Customer cancelled"
    assert emitted == []


@pytest.mark.django_db
def test_internal_cancel_requires_valid_order_id(client):
    resp = post_json(client, reverse("delivery:cancel_order"), {"orderId": "not-a-uuid"})
    assert resp.status_code == 400
    assert not DeliveryOrder.objects.exists()


@pytest.mark.django_db
def test_delivered_order_cannot_be_cancelled(client, make_delivery):
    delivery = make_delivery(status=DeliveryOrder.DELIVERED)
    resp = post_json(client, reverse("delivery:cancel_order"), {"orderId": str(delivery.order_id)})
    assert resp.status_code == 400
    delivery.refresh_from_db()
    assert delivery.status == DeliveryOrder.DELIVERED
