from django.contrib import admin
from .models import Order, OrderStatusChange


class OrderStatusChangeInline(admin.TabularInline):
    model = OrderStatusChange
    extra = 0
    fields = ("status", "source", "note", "created_at")
    readonly_fields = fields
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "customer", "restaurant_name", "status", "total", "payment_method", "created_at")
    list_filter = ("status", "payment_method", "payment_status")
    search_fields = ("order_number", "customer__username", "customer_name", "restaurant_name", "restaurant_id")
    ordering = ("-created_at",)
    list_select_related = ("customer",)
    readonly_fields = ("order_number", "status", "created_at", "updated_at")
    inlines = [OrderStatusChangeInline]


@admin.register(OrderStatusChange)
class OrderStatusChangeAdmin(admin.ModelAdmin):
    list_display = ("order", "status", "source", "created_at")
    list_filter = ("status", "source")
    search_fields = ("order__order_number",)
