from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    # Healthcheck endpoint
    path("healthz", lambda _request: HttpResponse("ok")),
    path("api/delivery/", include(("apps.delivery.urls", "delivery"), namespace="delivery")),
]
