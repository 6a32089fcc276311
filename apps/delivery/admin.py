from django.contrib import admin
from .models import Courier, DeliveryOrder


@admin.register(DeliveryOrder)
class DeliveryOrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "order_id", "status", "courier", "order_amount", "delivery_fee", "source", "created_at")
    list_filter = ("status", "source", "payment_method")
    search_fields = ("order_number", "order_id", "restaurant_name", "customer_name")
    ordering = ("-created_at",)
    list_select_related = ("courier", "courier__user")
    readonly_fields = ("order_id", "created_at", "updated_at")


@admin.register(Courier)
class CourierAdmin(admin.ModelAdmin):
    list_display = ("user", "vehicle_type", "is_online", "is_available", "completed_orders", "total_earnings", "rating")
    list_filter = ("is_online", "is_available", "vehicle_type")
    search_fields = ("user__username", "user__email", "phone", "vehicle_number")
    list_select_related = ("user",)
    raw_id_fields = ("current_order",)
