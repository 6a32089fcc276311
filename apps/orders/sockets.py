import logging

from apps.realtime.server import order_room, sio

log = logging.getLogger(__name__)


@sio.on("join_order")
def join_order(sid, order_id):
    if not order_id:
        return
    sio.enter_room(sid, order_room(order_id))
    log.info("socket %s joined %s", sid, order_room(order_id))


@sio.on("leave_order")
def leave_order(sid, order_id):
    if order_id:
        sio.leave_room(sid, order_room(order_id))
