from django.db import models
from django.utils import timezone
from apps.common.models import BaseModel


class OutboundCall(BaseModel):
    TARGET_CHOICES = [("customer", "Customer backend"), ("delivery", "Delivery backend"), ("restaurant", "Restaurant backend")]
    METHOD_CHOICES = [("POST", "POST"), ("PUT", "PUT"), ("PATCH", "PATCH")]
    STATUS_CHOICES = [
        ("queued", "Queued"),
        ("processing", "Processing"),
        ("sent", "Sent"),
        ("failed", "Failed"),
    ]
    RESULT_CHOICES = [("ok", "OK"), ("retryable", "Retryable failure"), ("permanent", "Permanent failure")]

    target = models.CharField(max_length=20, choices=TARGET_CHOICES)
    method = models.CharField(max_length=10, choices=METHOD_CHOICES, default="POST")
    path = models.CharField(max_length=200)
    payload_json = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="queued", db_index=True)
    attempts = models.PositiveIntegerField(default=0)
    last_result = models.CharField(max_length=20, choices=RESULT_CHOICES, blank=True)
    response_status = models.PositiveIntegerField(blank=True, null=True)
    error_message = models.TextField(blank=True, null=True)
    idempotency_key = models.CharField(max_length=160, blank=True, null=True, unique=True)
    sent_at = models.DateTimeField(blank=True, null=True)
    is_dlq = models.BooleanField(default=False)

    class Meta:
        indexes = [
            models.Index(fields=["status", "updated_at"], name="outbox_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.method} {self.target}:{self.path} [{self.status}]"


class OutboundAttempt(BaseModel):
    call = models.ForeignKey(OutboundCall, on_delete=models.CASCADE, related_name="attempts_log")
    started_at = models.DateTimeField(default=timezone.now)
    finished_at = models.DateTimeField(blank=True, null=True)
    result = models.CharField(max_length=20, choices=OutboundCall.RESULT_CHOICES)
    response_status = models.PositiveIntegerField(blank=True, null=True)
    response_json = models.JSONField(default=dict, blank=True)
    error_message = models.TextField(blank=True, null=True)
