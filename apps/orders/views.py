import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.common.api import BadPayload, fail, internal_only, json_body, login_required_json, ok, paginate
from .models import Order
from .serializers import serialize_order, serialize_order_for_owner
from . import services

log = logging.getLogger(__name__)


def _own_order(request, order_id) -> Order | None:
    return Order.objects.filter(pk=order_id, customer=request.user).first()


@csrf_exempt
@require_POST
@login_required_json
def create_order(request):
    try:
        data = json_body(request)
        order = services.create_order(request.user, data)
    except BadPayload as e:
        return fail(str(e))
    except services.OrderError as e:
        return fail(str(e), status=e.status_code)
    return ok(serialize_order_for_owner(order), status=201, message="Order placed successfully")


@require_GET
@login_required_json
def my_orders(request):
    qs = Order.objects.filter(customer=request.user).order_by("-created_at")
    status = (request.GET.get("status") or "").strip()
    if status and status != "All":
        try:
            qs = qs.filter(status=services.normalize_status(status))
        except services.InvalidStatus as e:
            return fail(str(e))
    page_obj, paginator = paginate(qs, request)
    return ok(
        [serialize_order_for_owner(o) for o in page_obj.object_list],
        pagination={"total": paginator.count, "page": page_obj.number, "pages": paginator.num_pages},
    )


@require_GET
@login_required_json
def order_detail(request, order_id):
    order = _own_order(request, order_id)
    if not order:
        return fail("Order not found", status=404)
    return ok(serialize_order_for_owner(order))


@csrf_exempt
@require_http_methods(["PATCH", "POST"])
@login_required_json
def cancel_order(request, order_id):
    order = _own_order(request, order_id)
    if not order:
        return fail("Order not found", status=404)
    try:
        data = json_body(request)
        order = services.cancel_order(order, reason=data.get("reason"))
    except BadPayload as e:
        return fail(str(e))
    except services.OrderError as e:
        return fail(str(e), status=e.status_code)
    return ok(serialize_order_for_owner(order), message="Order cancelled successfully")


@csrf_exempt
@require_POST
@login_required_json
def rate_order(request, order_id):
    try:
        data = json_body(request)
    except BadPayload as e:
        return fail(str(e))
    order = _own_order(request, order_id)
    if not order:
        return fail("Order not found", status=404)
    try:
        order = services.rate_order(order, rating=data.get("rating"), review=data.get("review"))
    except services.OrderError as e:
        return fail(str(e), status=e.status_code)
    return ok(serialize_order_for_owner(order), message="Rating submitted successfully")


@csrf_exempt
@require_http_methods(["PUT", "POST"])
@internal_only
def update_order_status(request, order_id):
    """Status callback used by the restaurant and delivery backends."""
    try:
        data = json_body(request)
    except BadPayload as e:
        return fail(str(e))
    source = str(data.get("source") or request.headers.get("X-Service-Name") or "restaurant").lower()
    if source not in {"restaurant", "delivery"}:
        source = "restaurant"
    try:
        order = services.update_status(
            order_id,
            data.get("status"),
            source=source,
            accepted_at=data.get("acceptedAt"),
            rejected_at=data.get("rejectedAt"),
            rejection_reason=data.get("rejectionReason"),
            cancellation_reason=data.get("cancellationReason"),
        )
    except Order.DoesNotExist:
        return fail("Order not found", status=404)
    except services.OrderError as e:
        log.warning("Rejected status update for order %s: %s", order_id, e)
        return fail(str(e), status=e.status_code)
    return ok(serialize_order(order), message="Order status updated successfully")


@require_GET
@internal_only
def ready_orders(request):
    orders = list(Order.objects.filter(status=Order.READY).order_by("-updated_at"))
    return ok([serialize_order_for_owner(o) for o in orders], count=len(orders))
