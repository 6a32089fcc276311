import json
import uuid
from decimal import Decimal
from types import SimpleNamespace
from urllib.parse import urlparse

import pytest
import requests
from django.test import Client

from apps.delivery.models import Courier, DeliveryOrder
from apps.orders.models import Order


def _response(url: str, status: int, body) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp.encoding = "utf-8"
    resp.headers["Content-Type"] = "application/json"
    resp._content = json.dumps(body).encode("utf-8")
    return resp


class FakeNetwork:
    """Stands in for the wire between services.

    Calls to the customer and delivery hosts are served by this process
    through the Django test client; the restaurant backend is external and
    answers with ``restaurant_status``. Hosts or paths listed in ``down``
    refuse connections; ``status_overrides`` forces a status per path.
    """

    def __init__(self):
        self.client = Client()
        self.calls = []
        self.down = set()
        self.status_overrides = {}
        self.restaurant_status = 200

    def request(self, method, url, json=None, headers=None, timeout=None, **kwargs):
        parsed = urlparse(url)
        self.calls.append(SimpleNamespace(
            method=method, host=parsed.netloc, path=parsed.path, json=json, headers=headers or {}, timeout=timeout,
        ))
        if parsed.netloc in self.down or parsed.path in self.down:
            raise requests.ConnectionError(f"connection refused: {url}")
        if parsed.path in self.status_overrides:
            return _response(url, self.status_overrides[parsed.path], {"success": False})
        if parsed.netloc == "restaurant.test":
            return _response(url, self.restaurant_status, {"success": self.restaurant_status < 400})

        extra = {
            "HTTP_" + name.upper().replace("-", "_"): value
            for name, value in (headers or {}).items()
            if name.lower() != "content-type"
        }
        body = "" if json is None else _dumps(json)
        resp = self.client.generic(method, parsed.path, body, content_type="application/json", **extra)
        data = resp.json() if resp.content else {}
        return _response(url, resp.status_code, data)

    def to(self, host: str, path: str | None = None):
        return [c for c in self.calls if c.host == host and (path is None or c.path == path)]


def _dumps(payload) -> str:
    return json.dumps(payload)


@pytest.fixture(autouse=True)
def network(monkeypatch):
    net = FakeNetwork()
    monkeypatch.setattr("apps.common.http.requests.request", net.request)
    return net


@pytest.fixture(autouse=True)
def emitted(monkeypatch):
    """Socket.IO events as (event, data, room) tuples."""
    from apps.realtime import server

    events = []

    def fake_emit(event, data=None, to=None, **kwargs):
        events.append((event, data, to))

    monkeypatch.setattr(server.sio, "emit", fake_emit)
    return events


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(
        username="ana", email="ana@example.com", password="x", first_name="Ana", last_name="Souza"
    )


@pytest.fixture
def customer_client(user):
    c = Client()
    c.force_login(user)
    return c


@pytest.fixture
def make_courier(django_user_model):
    def _make_courier(username: str = "rider", **fields) -> Courier:
        u = django_user_model.objects.create_user(username=username, password="x")
        fields.setdefault("is_online", True)
        fields.setdefault("is_available", True)
        return Courier.objects.create(user=u, vehicle_number="KA01AB1234", **fields)

    return _make_courier


@pytest.fixture
def courier(make_courier):
    return make_courier()


@pytest.fixture
def courier_client(courier):
    c = Client()
    c.force_login(courier.user)
    return c


@pytest.fixture
def make_order(user):
    def _make_order(*, status: str = Order.PENDING, total: str = "500.00", delivery_fee: str = "40.00", otp=None) -> Order:
        return Order.objects.create(
            customer=user,
            customer_name="Ana Souza",
            customer_phone="+919800000001",
            restaurant_id="rest-1",
            restaurant_name="Spice Route",
            restaurant_address="12 MG Road",
            items_json=[{"name": "Paneer Tikka", "price": "230.00", "quantity": 2, "customization": ""}],
            delivery_address={"street": "4 Lake View", "city": "Bengaluru", "pincode": "560001"},
            subtotal=Decimal("460.00"),
            delivery_fee=Decimal(delivery_fee),
            total=Decimal(total),
            status=status,
            delivery_otp=otp,
        )

    return _make_order


@pytest.fixture
def make_delivery():
    counter = {"n": 0}

    def _make_delivery(*, order_id=None, status: str = DeliveryOrder.READY_FOR_PICKUP, courier=None, fee: str = "40.00", otp=None) -> DeliveryOrder:
        counter["n"] += 1
        return DeliveryOrder.objects.create(
            order_id=order_id or uuid.uuid4(),
            order_number=f"ORD-20260101-{counter['n']:06X}",
            restaurant_id="rest-1",
            restaurant_name="Spice Route",
            customer_id="cust-1",
            customer_name="Ana Souza",
            customer_phone="+919800000001",
            delivery_address={"street": "4 Lake View", "city": "Bengaluru"},
            order_amount=Decimal("500.00"),
            delivery_fee=Decimal(fee),
            status=status,
            courier=courier,
            delivery_otp=otp,
        )

    return _make_delivery


def put_json(client, url, data):
    return client.put(url, data=json.dumps(data), content_type="application/json")


def post_json(client, url, data=None):
    return client.post(url, data=json.dumps(data or {}), content_type="application/json")
