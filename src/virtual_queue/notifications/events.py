from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class EventType:
    ENTRY_JOINED = "entry_joined"
    ENTRY_REMOVED = "entry_removed"
    ENTRY_CALLED = "entry_called"
    ENTRY_SERVED = "entry_served"
    POSITION_CHANGED = "position_changed"
    ALMOST_TURN = "almost_turn"
    QUEUE_CHANGED = "queue_changed"


@dataclass(frozen=True)
class QueueEvent:
    """A change pushed to subscribers.

    Events with an entry_id go to that entry's room; events with a counter_id
    go to the counter's room (staff screens).
    """

    type: str
    counter_id: Optional[int] = None
    entry_id: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> Dict[str, Any]:
        return {"type": self.type, "counter_id": self.counter_id, "entry_id": self.entry_id, **self.payload}


def entry_room(entry_id: int) -> str:
    return f"entry:{int(entry_id)}"


def counter_room(counter_id: int) -> str:
    return f"counter:{int(counter_id)}"
