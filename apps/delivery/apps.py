from django.apps import AppConfig


class DeliveryConfig(AppConfig):
    name = "apps.delivery"
    verbose_name = "Delivery"

    def ready(self):
        # Socket.IO handlers
        from . import sockets  # noqa: F401
