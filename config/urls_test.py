from django.urls import include, path

# Paths of the two services do not overlap, so tests can serve both.
urlpatterns = [
    path("api/orders/", include(("apps.orders.urls", "orders"), namespace="orders")),
    path("api/delivery/", include(("apps.delivery.urls", "delivery"), namespace="delivery")),
]
