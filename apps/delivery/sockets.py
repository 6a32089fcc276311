import logging
from typing import Any

from apps.realtime.server import courier_room, emit, sio
from .models import DeliveryOrder
from .serializers import new_order_summary

log = logging.getLogger(__name__)


@sio.on("delivery:join")
def join(sid, courier_id):
    if not courier_id:
        return
    sio.enter_room(sid, courier_room(courier_id))
    log.info("courier %s joined (sid=%s)", courier_id, sid)


@sio.on("delivery:leave")
def leave(sid, courier_id):
    if not courier_id:
        return
    sio.leave_room(sid, courier_room(courier_id))
    log.info("courier %s left (sid=%s)", courier_id, sid)


def broadcast_new_order(order: DeliveryOrder) -> bool:
    return emit("new:order", new_order_summary(order))


def notify_courier(courier_id, event: str, data: dict[str, Any]) -> bool:
    return emit(event, data, room=courier_room(courier_id))
