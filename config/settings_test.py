from .settings import *  # noqa: F401,F403

# Both services in one process so the full order flow can run in-process.
ROOT_URLCONF = "config.urls_test"
SERVICE_NAME = "test"

INSTALLED_APPS = INSTALLED_APPS + [  # noqa: F405
    "apps.orders.apps.OrdersConfig",
    "apps.delivery.apps.DeliveryConfig",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

RESTAURANT_BACKEND_URL = "http://restaurant.test"
CUSTOMER_BACKEND_URL = "http://customer.test"
DELIVERY_BACKEND_URL = "http://delivery.test"
INTERNAL_API_TOKEN = ""
DELIVERY_OTP_REQUIRED = False
SOCKETIO_MESSAGE_QUEUE = ""

SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False
