from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Counter:
    """A service station customers are queued against."""

    counter_id: int
    counter_number: int
    name: str
    is_active: bool = True
    current_staff_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "counter_id": self.counter_id,
            "counter_number": self.counter_number,
            "name": self.name,
            "is_active": self.is_active,
            "current_staff_id": self.current_staff_id,
        }
