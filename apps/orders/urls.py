from django.urls import path
from . import views

app_name = "orders"

urlpatterns = [
    path("", views.create_order, name="create"),
    path("my-orders", views.my_orders, name="my_orders"),
    # Service-to-service
    path("internal/ready", views.ready_orders, name="ready_orders"),
    path("<uuid:order_id>", views.order_detail, name="detail"),
    path("<uuid:order_id>/cancel", views.cancel_order, name="cancel"),
    path("<uuid:order_id>/rate", views.rate_order, name="rate"),
    path("<uuid:order_id>/update-status", views.update_order_status, name="update_status"),
]
