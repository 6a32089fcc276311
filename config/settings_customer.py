import os

from .settings import *  # noqa: F401,F403
from .settings import database_config

ROOT_URLCONF = "config.urls_customer"
WSGI_APPLICATION = "config.wsgi.application"
SERVICE_NAME = "customer"

DATABASES = {
    "default": database_config(
        os.getenv("CUSTOMER_DATABASE_URL") or DATABASE_URL,  # noqa: F405
        os.getenv("POSTGRES_DB", "customer"),
    )
}

# Distinct cookies so both services can run side by side on localhost.
SESSION_COOKIE_NAME = os.getenv("CUSTOMER_SESSION_COOKIE", "customer_sessionid")
CSRF_COOKIE_NAME = os.getenv("CUSTOMER_CSRF_COOKIE", "customer_csrftoken")

INSTALLED_APPS = INSTALLED_APPS + ["apps.orders.apps.OrdersConfig"]  # noqa: F405

CELERY_BEAT_SCHEDULE = {
    "outbox-requeue-stale": {
        "task": "apps.outbox.tasks.requeue_stale_calls",
        "schedule": 60.0,
    },
}
