"""Socket.IO server shared by the Django process of one service.

Each service (customer, delivery) runs its own instance; nothing is shared
between them. Apps register their own event handlers from ``AppConfig.ready``.
"""
from __future__ import annotations

import json
import logging
from typing import Any

import socketio
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

log = logging.getLogger(__name__)


def _client_manager():
    url = getattr(settings, "SOCKETIO_MESSAGE_QUEUE", "")
    if url:
        return socketio.RedisManager(url)
    return None


sio = socketio.Server(
    async_mode="threading",
    cors_allowed_origins=getattr(settings, "SOCKETIO_CORS_ORIGINS", None) or "*",
    client_manager=_client_manager(),
)


def order_room(order_id) -> str:
    return f"order_{order_id}"


def courier_room(courier_id) -> str:
    return f"delivery:{courier_id}"


@sio.event
def connect(sid, environ, auth=None):
    log.info("socket connected sid=%s", sid)


@sio.event
def disconnect(sid, reason=None):
    log.info("socket disconnected sid=%s", sid)


def _plain(data: Any) -> Any:
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def emit(event: str, data: dict[str, Any], *, room: str | None = None) -> bool:
    """Best-effort emit; failures are logged and never raised."""
    try:
        sio.emit(event, _plain(data), to=room)
    except Exception:
        log.exception("socket emit failed event=%s room=%s", event, room)
        return False
    log.info("socket emit event=%s room=%s", event, room or "*")
    return True
