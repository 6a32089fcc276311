import os
from celery import Celery

# Run one worker (and one beat) per service, e.g.
#   DJANGO_SETTINGS_MODULE=config.settings_delivery celery -A config worker -B
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings_customer")

app = Celery("config")
# Beat schedule comes from CELERY_BEAT_SCHEDULE of the active settings module
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
