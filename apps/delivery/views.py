import logging
from decimal import Decimal
from functools import wraps

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.common.api import BadPayload, fail, internal_only, json_body, login_required_json, ok, paginate
from .models import Courier, DeliveryOrder
from .serializers import serialize_courier, serialize_delivery_order
from . import services

log = logging.getLogger(__name__)


def courier_required(view):
    """Authenticated user with a courier profile; exposed as ``request.courier``."""

    @wraps(view)
    @login_required_json
    def _wrapped(request, *args, **kwargs):
        courier = Courier.objects.filter(user=request.user).first()
        if not courier:
            return fail("Courier profile required", status=403)
        request.courier = courier
        return view(request, *args, **kwargs)

    return _wrapped


def _run(action, *args, **kwargs):
    """Call a courier action and map domain errors to JSON responses."""
    try:
        return action(*args, **kwargs), None
    except DeliveryOrder.DoesNotExist:
        return None, fail("Order not found", status=404)
    except services.DeliveryError as e:
        return None, fail(str(e), status=e.status_code)


# ----------------------------------------------------------------------------
# Service-to-service
# ----------------------------------------------------------------------------

@csrf_exempt
@require_POST
@internal_only
def create_delivery_order(request):
    try:
        payload = json_body(request)
        order, created = services.create_delivery_order(payload, source="callback")
    except BadPayload as e:
        return fail(str(e))
    except services.ValidationFailed as e:
        return fail(str(e))
    if not created:
        return ok(serialize_delivery_order(order), message="Delivery order already exists")
    return ok(serialize_delivery_order(order), status=201, message="Delivery order created successfully")


@csrf_exempt
@require_POST
@internal_only
def cancel_delivery_order(request):
    try:
        payload = json_body(request)
    except BadPayload as e:
        return fail(str(e))
    if not payload.get("orderId"):
        return fail("orderId is required")
    order, error = _run(services.cancel_delivery_order, payload["orderId"], reason=payload.get("reason"))
    if error:
        return error
    return ok(serialize_delivery_order(order), message="Delivery order cancelled")


# ----------------------------------------------------------------------------
# Courier order actions
# ----------------------------------------------------------------------------

@require_GET
@courier_required
def available_orders(request):
    if not request.courier.is_available:
        return fail("You are not available for orders")
    orders = list(
        DeliveryOrder.objects.filter(status=DeliveryOrder.READY_FOR_PICKUP, courier__isnull=True)
        .order_by("-created_at")[:20]
    )
    return ok([serialize_delivery_order(o) for o in orders], count=len(orders))


@require_GET
@courier_required
def current_order(request):
    order = request.courier.current_order
    if not order:
        return ok(None, message="No active order")
    return ok(serialize_delivery_order(order))


@require_GET
@courier_required
def delivery_history(request):
    qs = DeliveryOrder.objects.filter(courier=request.courier, status=DeliveryOrder.DELIVERED).order_by("-delivered_at")
    page_obj, paginator = paginate(qs, request)
    return ok(
        [serialize_delivery_order(o) for o in page_obj.object_list],
        pagination={
            "currentPage": page_obj.number,
            "totalPages": paginator.num_pages,
            "totalOrders": paginator.count,
        },
    )


@csrf_exempt
@require_http_methods(["PUT", "POST"])
@courier_required
def update_location(request):
    try:
        data = json_body(request)
    except BadPayload as e:
        return fail(str(e))
    _, error = _run(services.update_location, request.courier, latitude=data.get("latitude"), longitude=data.get("longitude"))
    if error:
        return error
    return ok(None, message="Location updated successfully")


@csrf_exempt
@require_POST
@courier_required
def accept_order(request, delivery_id):
    order, error = _run(services.accept_order, request.courier, delivery_id)
    if error:
        return error
    return ok(serialize_delivery_order(order), message="Order accepted successfully")


@csrf_exempt
@require_POST
@courier_required
def reject_order(request, delivery_id):
    try:
        data = json_body(request)
    except BadPayload as e:
        return fail(str(e))
    order, error = _run(services.reject_order, request.courier, delivery_id, reason=data.get("reason"))
    if error:
        return error
    return ok(serialize_delivery_order(order), message="Order rejected")


@csrf_exempt
@require_POST
@courier_required
def pickup_order(request, delivery_id):
    order, error = _run(services.pickup_order, request.courier, delivery_id)
    if error:
        return error
    return ok(serialize_delivery_order(order), message="Order picked up successfully")


@csrf_exempt
@require_POST
@courier_required
def start_transit(request, delivery_id):
    order, error = _run(services.start_transit, request.courier, delivery_id)
    if error:
        return error
    return ok(serialize_delivery_order(order), message="Order is now in transit")


@csrf_exempt
@require_POST
@courier_required
def complete_order(request, delivery_id):
    try:
        data = json_body(request)
    except BadPayload as e:
        return fail(str(e))
    order, error = _run(services.complete_order, request.courier, delivery_id, otp=data.get("otp"))
    if error:
        return error
    return ok(
        {"order": serialize_delivery_order(order), "earnings": str(order.delivery_fee)},
        message="Order delivered successfully",
    )


# ----------------------------------------------------------------------------
# Courier profile
# ----------------------------------------------------------------------------

@require_GET
@courier_required
def profile(request):
    return ok(serialize_courier(request.courier))


@csrf_exempt
@require_http_methods(["PUT", "POST"])
@courier_required
def toggle_online(request):
    courier = services.toggle_online(request.courier)
    return ok(
        {"isOnline": courier.is_online, "isAvailable": courier.is_available},
        message=f"You are now {'online' if courier.is_online else 'offline'}",
    )


@csrf_exempt
@require_http_methods(["PUT", "POST"])
@courier_required
def toggle_availability(request):
    courier, error = _run(services.toggle_availability, request.courier)
    if error:
        return error
    state = "available" if courier.is_available else "unavailable"
    return ok({"isAvailable": courier.is_available}, message=f"You are now {state} for orders")


@require_GET
@courier_required
def earnings(request):
    courier = request.courier
    average = (
        (courier.total_earnings / courier.completed_orders).quantize(Decimal("0.01"))
        if courier.completed_orders
        else Decimal("0")
    )
    return ok({
        "totalEarnings": str(courier.total_earnings),
        "completedOrders": courier.completed_orders,
        "averageEarningsPerOrder": str(average),
        "rating": str(courier.rating),
    })
