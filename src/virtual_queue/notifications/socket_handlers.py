from __future__ import annotations

import logging

from flask import session
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..container import Container
from ..core.enums import Role
from ..core.exceptions import DomainError
from .events import counter_room, entry_room

logger = logging.getLogger(__name__)


def _as_int(data, key: str):
    try:
        return int((data or {}).get(key))
    except (TypeError, ValueError):
        return None


def register(socketio: SocketIO, container: Container) -> None:
    @socketio.on("subscribe_entry")
    def subscribe_entry(data):
        entry_id = _as_int(data, "entry_id")
        if entry_id is None:
            emit("error", {"message": "entry_id is required"})
            return
        try:
            ticket = container.queue_service.get_status(entry_id)
        except DomainError as e:
            emit("error", {"message": str(e)})
            return

        join_room(entry_room(entry_id))
        emit("entry_state", ticket.to_dict())

    @socketio.on("unsubscribe_entry")
    def unsubscribe_entry(data):
        entry_id = _as_int(data, "entry_id")
        if entry_id is not None:
            leave_room(entry_room(entry_id))

    @socketio.on("subscribe_counter")
    def subscribe_counter(data):
        if session.get("role") not in (Role.STAFF.value, Role.ADMIN.value):
            emit("error", {"message": "Staff access required"})
            return
        counter_id = _as_int(data, "counter_id")
        if counter_id is None:
            emit("error", {"message": "counter_id is required"})
            return
        try:
            waiting = container.queue_service.list_waiting(current_role=Role(session["role"]), counter_id=counter_id)
        except DomainError as e:
            emit("error", {"message": str(e)})
            return

        join_room(counter_room(counter_id))
        logger.info("staff subscribed to counter", extra={"counter_id": counter_id, "user_id": session.get("user_id")})
        emit("counter_state", {"counter_id": counter_id, "waiting": waiting})

    @socketio.on("unsubscribe_counter")
    def unsubscribe_counter(data):
        counter_id = _as_int(data, "counter_id")
        if counter_id is not None:
            leave_room(counter_room(counter_id))
