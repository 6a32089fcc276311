import pytest
from django.urls import reverse

from apps.orders import services
from apps.orders.models import Order
from apps.outbox.models import OutboundCall
from conftest import put_json


def status_url(order):
    return reverse("orders:update_status", args=[order.id])


ALLOWED = [
    (Order.PENDING, Order.ACCEPTED),
    (Order.PENDING, Order.REJECTED),
    (Order.PENDING, Order.CANCELLED),
    (Order.ACCEPTED, Order.PREPARING),
    (Order.PREPARING, Order.READY),
    (Order.PENDING, Order.PREPARING),
    (Order.PENDING, Order.READY),
    (Order.ACCEPTED, Order.READY),
    (Order.ACCEPTED, Order.OUT_FOR_DELIVERY),
    (Order.PREPARING, Order.OUT_FOR_DELIVERY),
    (Order.READY, Order.OUT_FOR_DELIVERY),
    (Order.READY, Order.DELIVERED),
    (Order.OUT_FOR_DELIVERY, Order.DELIVERED),
    (Order.OUT_FOR_DELIVERY, Order.CANCELLED),
]


@pytest.mark.django_db
@pytest.mark.parametrize("current,target", ALLOWED)
def test_allowed_transition_is_persisted(client, make_order, current, target):
    order = make_order(status=current)

    resp = put_json(client, status_url(order), {"status": target})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["status"] == target
    order.refresh_from_db()
    assert order.status == target
    history = list(order.status_changes.values_list("status", flat=True))
    assert sorted(history) == sorted([current, target])


@pytest.mark.django_db
@pytest.mark.parametrize("current,target", [
    (Order.DELIVERED, Order.PREPARING),
    (Order.CANCELLED, Order.READY),
    (Order.OUT_FOR_DELIVERY, Order.PREPARING),
    (Order.READY, Order.PENDING),
    (Order.ACCEPTED, Order.DELIVERED),
    (Order.REJECTED, Order.ACCEPTED),
])
def test_disallowed_transition_rejected_without_write(client, make_order, emitted, current, target):
    order = make_order(status=current)

    resp = put_json(client, status_url(order), {"status": target})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": f"invalid transition: {current} -> {target}"}
    order.refresh_from_db()
    assert order.status == current
    assert order.status_changes.count() == 1
    assert not OutboundCall.objects.exists()
    assert emitted == []


@pytest.mark.django_db
def test_unknown_order_returns_404(client):
    resp = put_json(client, "/api/orders/7c1f3a1e-0000-4000-8000-000000000000/update-status", {"status": "Accepted"})
    assert resp.status_code == 404
    assert resp.json()["message"] == "Order not found"


@pytest.mark.django_db
@pytest.mark.parametrize("status", ["Shipped", "", None, "ready"])
def test_unknown_status_returns_400(client, make_order, status):
    order = make_order()
    resp = put_json(client, status_url(order), {"status": status})
    assert resp.status_code == 400
    order.refresh_from_db()
    assert order.status == Order.PENDING


@pytest.mark.django_db
def test_spaced_out_for_delivery_spelling_is_normalized(client, make_order):
    order = make_order(status=Order.READY)
    resp = put_json(client, status_url(order), {"status": "Out for Delivery"})
    assert resp.status_code == 200
    order.refresh_from_db()
    assert order.status == "OutForDelivery"


@pytest.mark.django_db
def test_acceptance_fields_are_applied(client, make_order):
    order = make_order()
    resp = put_json(client, status_url(order), {"status": "Accepted", "acceptedAt": "2026-01-05T10:00:00Z"})
    assert resp.status_code == 200
    order.refresh_from_db()
    assert order.accepted_at.isoformat().startswith("2026-01-05T10:00:00")


@pytest.mark.django_db
def test_rejection_records_reason(client, make_order):
    order = make_order()
    put_json(client, status_url(order), {"status": "Rejected", "rejectionReason": "Kitchen closed"})
    order.refresh_from_db()
    assert order.status == Order.REJECTED
    assert order.rejection_reason == "Kitchen closed"
    assert order.status_changes.get(status=Order.REJECTED).note == "Kitchen closed"


@pytest.mark.django_db
def test_status_change_is_emitted_to_order_room(client, make_order, emitted):
    order = make_order(status=Order.ACCEPTED)

    put_json(client, status_url(order), {"status": "Preparing"})

    assert len(emitted) == 1
    event, data, room = emitted[0]
    assert event == "orderStatusUpdated"
    assert room == f"order_{order.id}"
    assert data["orderId"] == str(order.id)
    assert data["status"] == "Preparing"
    assert data["updatedOrder"]["orderNumber"] == order.order_number


@pytest.mark.django_db
def test_ready_notifies_delivery_backend_once(client, make_order, network, django_capture_on_commit_callbacks):
    order = make_order(status=Order.PREPARING)

    with django_capture_on_commit_callbacks(execute=True):
        assert put_json(client, status_url(order), {"status": "Ready"}).status_code == 200
    with django_capture_on_commit_callbacks(execute=True):
        assert put_json(client, status_url(order), {"status": "Ready"}).status_code == 200

    creates = network.to("delivery.test", "/api/delivery/orders/create")
    assert len(creates) == 1
    payload = creates[0].json
    assert payload["orderId"] == str(order.id)
    assert payload["orderAmount"] == "500.00"
    assert payload["restaurant"] == "rest-1"
    assert OutboundCall.objects.filter(path="/api/delivery/orders/create").count() == 1


@pytest.mark.django_db
@pytest.mark.parametrize("target", [Order.OUT_FOR_DELIVERY, Order.DELIVERED])
def test_restaurant_is_told_about_delivery_progress(client, make_order, network, django_capture_on_commit_callbacks, target):
    order = make_order(status=Order.READY)

    with django_capture_on_commit_callbacks(execute=True):
        put_json(client, status_url(order), {"status": target})

    calls = network.to("restaurant.test", "/api/orders/receive-status-update")
    assert len(calls) == 1
    assert calls[0].method == "PUT"
    assert calls[0].json == {"orderId": str(order.id), "status": target}


@pytest.mark.django_db
def test_notification_failure_does_not_fail_status_update(client, make_order, network, django_capture_on_commit_callbacks):
    network.down.add("delivery.test")
    order = make_order(status=Order.PREPARING)

    with django_capture_on_commit_callbacks(execute=True):
        resp = put_json(client, status_url(order), {"status": "Ready"})

    assert resp.status_code == 200
    order.refresh_from_db()
    assert order.status == Order.READY
    call = OutboundCall.objects.get(path="/api/delivery/orders/create")
    assert call.status != "sent"
    assert call.last_result == "retryable"


@pytest.mark.django_db
def test_same_status_is_accepted_without_new_history(make_order):
    order = make_order(status=Order.PREPARING)
    services.update_status(order.id, "Preparing", source="restaurant")
    order.refresh_from_db()
    assert order.status == Order.PREPARING
    assert order.status_changes.count() == 1


@pytest.mark.django_db
def test_internal_token_is_enforced_when_configured(client, make_order, settings):
    settings.INTERNAL_API_TOKEN = "s3cret"
    order = make_order()

    denied = put_json(client, status_url(order), {"status": "Accepted"})
    allowed = client.put(
        status_url(order), data='{"status": "Accepted"}', content_type="application/json",
        HTTP_X_INTERNAL_TOKEN="s3cret",
    )

    assert denied.status_code == 403
    assert allowed.status_code == 200


def test_can_transition_table():
    assert services.can_transition(Order.READY, Order.READY)
    assert services.can_transition(Order.READY, Order.DELIVERED)
    assert not services.can_transition(Order.DELIVERED, Order.CANCELLED)
    assert not services.can_transition(Order.PENDING, Order.OUT_FOR_DELIVERY)


@pytest.mark.django_db
def test_reapplying_current_status_adds_no_history(client, make_order):
    order = make_order(status=Order.PREPARING)

    resp = put_json(client, status_url(order), {"status": "Preparing", "source": "restaurant"})

    assert resp.status_code == 200
    assert list(order.status_changes.values_list("status", "source")) == [(Order.PREPARING, "initial")]


@pytest.mark.django_db
@pytest.mark.parametrize("body", [
    {"status": "Accepted", "acceptedAt": "2026-02-30T10:00:00Z"},
    {"status": "Accepted", "acceptedAt": 1767607200},
    {"status": "Rejected", "rejectionReason": {"code": 7}},
    {"status": "Cancelled", "cancellationReason": ["closed"]},
])
def test_malformed_status_fields_are_rejected(client, make_order, emitted, body):
    order = make_order()

    resp = put_json(client, status_url(order), body)

    assert resp.status_code == 400
    assert resp.json()["success"] is False
    order.refresh_from_db()
    assert order.status == Order.PENDING
    assert emitted == []
