import os

import socketio
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings_customer")

django_app = get_wsgi_application()

# Imported after Django setup; apps register their handlers in ready().
from apps.realtime.server import sio  # noqa: E402

application = socketio.WSGIApp(sio, django_app)
