from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from .models import OutboundCall
from .tasks import deliver_call

log = logging.getLogger(__name__)


def _dispatch(call_id: str) -> None:
    try:
        deliver_call.delay(call_id)
    except Exception:
        # Broker unavailable: the row stays queued and requeue_stale_calls picks it up.
        log.exception("[outbox] could not dispatch call %s", call_id)


def enqueue(*, target: str, method: str, path: str, payload: Optional[dict[str, Any]] = None, idempotency_key: Optional[str] = None) -> OutboundCall:
    if idempotency_key:
        existing = OutboundCall.objects.filter(idempotency_key=idempotency_key).first()
        if existing:
            log.info("[outbox] duplicate call suppressed key=%s", idempotency_key)
            return existing

    call = OutboundCall(
        target=target,
        method=method.upper(),
        path=path,
        payload_json=payload or {},
        status="queued",
        idempotency_key=idempotency_key or None,
    )
    try:
        with transaction.atomic():
            call.save()
    except IntegrityError:
        # race on idempotency_key unique
        existing = OutboundCall.objects.filter(idempotency_key=idempotency_key).first()
        if existing:
            return existing
        raise

    call_id = str(call.id)
    transaction.on_commit(lambda: _dispatch(call_id))
    log.info("[outbox] queued %s %s:%s key=%s", call.method, target, path, idempotency_key)
    return call


def redispatch(call: OutboundCall) -> None:
    """Put a failed or stuck call back on the queue (admin action)."""
    OutboundCall.objects.filter(pk=call.pk).update(status="queued", is_dlq=False, updated_at=timezone.now())
    call_id = str(call.id)
    transaction.on_commit(lambda: _dispatch(call_id))
