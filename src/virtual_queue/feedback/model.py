from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso


@dataclass(frozen=True)
class Feedback:
    feedback_id: int
    queue_entry_id: int
    counter_id: Optional[int]
    rating: int
    comments: Optional[str]
    customer_name: Optional[str]
    customer_phone: Optional[str]
    created_at: datetime
    counter_name: Optional[str] = None
    counter_number: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "feedback_id": self.feedback_id,
            "queue_entry_id": self.queue_entry_id,
            "counter_id": self.counter_id,
            "rating": self.rating,
            "comments": self.comments,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "created_at": to_iso(self.created_at),
            "counter": (
                {"name": self.counter_name, "counter_number": self.counter_number}
                if self.counter_name is not None
                else None
            ),
        }
