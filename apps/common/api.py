from __future__ import annotations

import hmac
import json
from functools import wraps
from typing import Any

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator
from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpRequest, JsonResponse


INTERNAL_TOKEN_HEADER = "X-Internal-Token"


class BadPayload(ValueError):
    pass


def ok(data: Any = None, *, status: int = 200, message: str | None = None, **extra) -> JsonResponse:
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    body.update(extra)
    return JsonResponse(body, status=status, encoder=DjangoJSONEncoder)


def fail(message: str, *, status: int = 400) -> JsonResponse:
    return JsonResponse({"success": False, "message": message}, status=status)


def json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise BadPayload("invalid json") from exc
    if not isinstance(data, dict):
        raise BadPayload("invalid json")
    return data


def paginate(qs, request: HttpRequest, *, default_limit: int = 20, max_limit: int = 100):
    try:
        limit = max(1, min(int(request.GET.get("limit") or default_limit), max_limit))
    except ValueError:
        limit = default_limit
    try:
        page = max(1, int(request.GET.get("page") or 1))
    except ValueError:
        page = 1
    paginator = Paginator(qs, limit)
    try:
        page_obj = paginator.page(page)
    except EmptyPage:
        page_obj = paginator.page(max(1, paginator.num_pages))
    return page_obj, paginator


def _internal_token_valid(request: HttpRequest) -> bool:
    expected = getattr(settings, "INTERNAL_API_TOKEN", "")
    if not expected:
        return True
    given = request.headers.get(INTERNAL_TOKEN_HEADER, "")
    return hmac.compare_digest(given, expected)


def internal_only(view):
    """Reject service-to-service calls that do not carry INTERNAL_API_TOKEN (when configured)."""

    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        if not _internal_token_valid(request):
            return fail("invalid internal token", status=403)
        return view(request, *args, **kwargs)

    return _wrapped


def login_required_json(view):
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return fail("Authentication required", status=401)
        return view(request, *args, **kwargs)

    return _wrapped
