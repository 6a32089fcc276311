from __future__ import annotations

from typing import Any

import requests
from django.conf import settings

from .api import INTERNAL_TOKEN_HEADER


def service_base_url(target: str) -> str:
    urls = {
        "customer": settings.CUSTOMER_BACKEND_URL,
        "delivery": settings.DELIVERY_BACKEND_URL,
        "restaurant": settings.RESTAURANT_BACKEND_URL,
    }
    try:
        return urls[target].rstrip("/")
    except KeyError:
        raise ValueError(f"unknown service target: {target}") from None


def internal_headers() -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    token = getattr(settings, "INTERNAL_API_TOKEN", "")
    if token:
        headers[INTERNAL_TOKEN_HEADER] = token
    return headers


def call_service(target: str, method: str, path: str, *, payload: Any = None, timeout: float | None = None) -> requests.Response:
    """Single seam for every cross-service HTTP call."""
    url = service_base_url(target) + "/" + path.lstrip("/")
    return requests.request(
        method.upper(),
        url,
        json=payload,
        headers=internal_headers(),
        timeout=timeout or settings.SERVICE_CALL_TIMEOUT,
    )
