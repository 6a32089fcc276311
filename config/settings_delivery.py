import os

from .settings import *  # noqa: F401,F403
from .settings import database_config

ROOT_URLCONF = "config.urls_delivery"
WSGI_APPLICATION = "config.wsgi.application"
SERVICE_NAME = "delivery"

DATABASES = {
    "default": database_config(
        os.getenv("DELIVERY_DATABASE_URL") or DATABASE_URL,  # noqa: F405
        os.getenv("POSTGRES_DB", "delivery"),
    )
}

SESSION_COOKIE_NAME = os.getenv("DELIVERY_SESSION_COOKIE", "delivery_sessionid")
CSRF_COOKIE_NAME = os.getenv("DELIVERY_CSRF_COOKIE", "delivery_csrftoken")

INSTALLED_APPS = INSTALLED_APPS + ["apps.delivery.apps.DeliveryConfig"]  # noqa: F405

CELERY_BEAT_SCHEDULE = {
    "poll-ready-orders": {
        "task": "apps.delivery.tasks.poll_ready_orders",
        "schedule": READY_POLL_INTERVAL,  # noqa: F405
    },
    "outbox-requeue-stale": {
        "task": "apps.outbox.tasks.requeue_stale_calls",
        "schedule": 60.0,
    },
}
