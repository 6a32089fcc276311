import datetime as dt
import logging

import requests
from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.common.http import call_service
from .models import OutboundCall, OutboundAttempt

log = logging.getLogger(__name__)


class TransientError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PermanentError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _response_json(resp) -> dict:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}


def perform_call(call: OutboundCall) -> tuple[int, dict]:
    """Run one HTTP attempt and classify the outcome."""
    try:
        resp = call_service(call.target, call.method, call.path, payload=call.payload_json)
    except requests.Timeout as exc:
        raise TransientError(f"timeout: {exc}") from exc
    except requests.ConnectionError as exc:
        raise TransientError(f"connection error: {exc}") from exc
    except requests.RequestException as exc:
        raise PermanentError(str(exc)) from exc
    if resp.status_code >= 500 or resp.status_code == 429:
        raise TransientError(f"{call.target} {resp.status_code}", resp.status_code)
    if resp.status_code >= 400:
        raise PermanentError(f"{call.target} {resp.status_code}: {resp.text[:500]}", resp.status_code)
    return resp.status_code, _response_json(resp)


def _finish_attempt(attempt: OutboundAttempt, *, result: str, status_code=None, body=None, error=None) -> None:
    attempt.result = result
    attempt.response_status = status_code
    attempt.response_json = body or {}
    attempt.error_message = error
    attempt.finished_at = timezone.now()
    attempt.save()


@shared_task(bind=True, max_retries=5, autoretry_for=(TransientError,), retry_backoff=True, retry_backoff_max=600)
def deliver_call(self, call_id: str):
    with transaction.atomic():
        try:
            call = OutboundCall.objects.select_for_update().get(id=call_id)
        except OutboundCall.DoesNotExist:
            log.warning("Outbound call %s not found", call_id)
            return None
        if call.status not in ("queued", "processing"):
            return call.status
        call.status = "processing"
        call.attempts = (call.attempts or 0) + 1
        call.save(update_fields=["status", "attempts", "updated_at"])

    attempt = OutboundAttempt(call=call, started_at=timezone.now())
    try:
        status_code, body = perform_call(call)
    except TransientError as te:
        _finish_attempt(attempt, result="retryable", status_code=te.status_code, error=str(te))
        call.last_result = "retryable"
        call.response_status = te.status_code
        call.error_message = str(te)
        if self.request.retries >= self.max_retries:
            call.status = "failed"
            call.is_dlq = True
            call.save(update_fields=["status", "is_dlq", "last_result", "response_status", "error_message", "updated_at"])
            log.error("[outbox] giving up on %s after %s attempts: %s", call, call.attempts, te)
            return "failed"
        call.status = "queued"
        call.save(update_fields=["status", "last_result", "response_status", "error_message", "updated_at"])
        log.warning("[outbox] retryable failure for %s (attempt %s): %s", call, call.attempts, te)
        # escalate to Celery autoretry
        raise
    except PermanentError as pe:
        _finish_attempt(attempt, result="permanent", status_code=pe.status_code, error=str(pe))
        call.status = "failed"
        call.last_result = "permanent"
        call.response_status = pe.status_code
        call.error_message = str(pe)
        call.save(update_fields=["status", "last_result", "response_status", "error_message", "updated_at"])
        log.error("[outbox] permanent failure for %s: %s", call, pe)
        return "failed"

    _finish_attempt(attempt, result="ok", status_code=status_code, body=body)
    call.status = "sent"
    call.last_result = "ok"
    call.response_status = status_code
    call.error_message = None
    call.sent_at = timezone.now()
    call.save(update_fields=["status", "last_result", "response_status", "error_message", "sent_at", "updated_at"])
    log.info("[outbox] delivered %s -> %s", call, status_code)
    return "sent"


@shared_task
def requeue_stale_calls():
    """Redispatch calls whose worker never reported back."""
    cutoff = timezone.now() - dt.timedelta(seconds=int(getattr(settings, "OUTBOX_STALE_AFTER", 60)))
    stale = OutboundCall.objects.filter(status__in=["queued", "processing"], updated_at__lt=cutoff, is_dlq=False)
    count = 0
    for call in stale.iterator():
        OutboundCall.objects.filter(pk=call.pk).update(status="queued", updated_at=timezone.now())
        deliver_call.delay(str(call.id))
        count += 1
    if count:
        log.info("[outbox] requeued %s stale calls", count)
    return {"requeued": count}
