from django.contrib import admin
from .models import OutboundAttempt, OutboundCall


class OutboundAttemptInline(admin.TabularInline):
    model = OutboundAttempt
    extra = 0
    fields = ("started_at", "finished_at", "result", "response_status", "error_message")
    readonly_fields = fields
    can_delete = False


@admin.register(OutboundCall)
class OutboundCallAdmin(admin.ModelAdmin):
    list_display = ("method", "target", "path", "status", "attempts", "last_result", "is_dlq", "created_at")
    list_filter = ("status", "target", "last_result", "is_dlq")
    search_fields = ("path", "idempotency_key")
    ordering = ("-created_at",)
    inlines = [OutboundAttemptInline]
    actions = ["requeue"]

    @admin.action(description="Requeue selected calls")
    def requeue(self, request, queryset):
        from .api import redispatch

        count = 0
        for call in queryset:
            redispatch(call)
            count += 1
        self.message_user(request, f"{count} call(s) requeued")
