import uuid
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


RESULT_CHOICES = [("ok", "OK"), ("retryable", "Retryable failure"), ("permanent", "Permanent failure")]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OutboundCall",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("target", models.CharField(choices=[("customer", "Customer backend"), ("delivery", "Delivery backend"), ("restaurant", "Restaurant backend")], max_length=20)),
                ("method", models.CharField(choices=[("POST", "POST"), ("PUT", "PUT"), ("PATCH", "PATCH")], default="POST", max_length=10)),
                ("path", models.CharField(max_length=200)),
                ("payload_json", models.JSONField(blank=True, default=dict)),
                ("status", models.CharField(choices=[("queued", "Queued"), ("processing", "Processing"), ("sent", "Sent"), ("failed", "Failed")], db_index=True, default="queued", max_length=20)),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("last_result", models.CharField(blank=True, choices=RESULT_CHOICES, max_length=20)),
                ("response_status", models.PositiveIntegerField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("idempotency_key", models.CharField(blank=True, max_length=160, null=True, unique=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("is_dlq", models.BooleanField(default=False)),
            ],
            options={
                "indexes": [models.Index(fields=["status", "updated_at"], name="outbox_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="OutboundAttempt",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("started_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                ("result", models.CharField(choices=RESULT_CHOICES, max_length=20)),
                ("response_status", models.PositiveIntegerField(blank=True, null=True)),
                ("response_json", models.JSONField(blank=True, default=dict)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("call", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attempts_log", to="outbox.outboundcall")),
            ],
        ),
    ]
