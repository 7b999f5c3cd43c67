from __future__ import annotations

import logging
from typing import Protocol

from flask_socketio import SocketIO

from .events import QueueEvent, counter_room, entry_room

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    def publish(self, event: QueueEvent) -> None:
        raise NotImplementedError


class NullPublisher(EventPublisher):
    def publish(self, event: QueueEvent) -> None:
        return None


class SocketIOPublisher(EventPublisher):
    """Push queue events to Socket.IO rooms.

    Entry events go to `entry:<id>`, counter events to `counter:<id>`; an
    event carrying both ids reaches both rooms.
    """

    def __init__(self, socketio: SocketIO):
        self._socketio = socketio

    def publish(self, event: QueueEvent) -> None:
        message = event.to_message()
        if event.entry_id is not None:
            self._socketio.emit(event.type, message, to=entry_room(event.entry_id))
        if event.counter_id is not None:
            self._socketio.emit(event.type, message, to=counter_room(event.counter_id))
        logger.debug(
            "event published",
            extra={"event": event.type, "entry_id": event.entry_id, "counter_id": event.counter_id},
        )
