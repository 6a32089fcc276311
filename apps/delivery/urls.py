from django.urls import path
from . import views

app_name = "delivery"

urlpatterns = [
    # Service-to-service
    path("orders/create", views.create_delivery_order, name="create_order"),
    path("orders/cancel", views.cancel_delivery_order, name="cancel_order"),
    # Courier
    path("orders/available", views.available_orders, name="available_orders"),
    path("orders/current", views.current_order, name="current_order"),
    path("orders/history", views.delivery_history, name="history"),
    path("orders/location", views.update_location, name="update_location"),
    path("orders/<uuid:delivery_id>/accept", views.accept_order, name="accept_order"),
    path("orders/<uuid:delivery_id>/reject", views.reject_order, name="reject_order"),
    path("orders/<uuid:delivery_id>/pickup", views.pickup_order, name="pickup_order"),
    path("orders/<uuid:delivery_id>/transit", views.start_transit, name="start_transit"),
    path("orders/<uuid:delivery_id>/complete", views.complete_order, name="complete_order"),
    path("profile", views.profile, name="profile"),
    path("profile/online", views.toggle_online, name="toggle_online"),
    path("profile/availability", views.toggle_availability, name="toggle_availability"),
    path("profile/earnings", views.earnings, name="earnings"),
]
