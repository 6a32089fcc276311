from django.apps import AppConfig


class OrdersConfig(AppConfig):
    name = "apps.orders"
    verbose_name = "Orders"

    def ready(self):
        # Socket.IO handlers
        from . import sockets  # noqa: F401
