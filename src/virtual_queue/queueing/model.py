from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import EntryStatus


@dataclass(frozen=True)
class QueueEntry:
    """Domain entity: one customer's ticket at a counter."""

    entry_id: int
    token_number: int
    counter_id: int
    position_in_queue: int
    status: EntryStatus
    joined_at: datetime
    estimated_wait_minutes: Optional[int] = None
    user_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    called_at: Optional[datetime] = None
    served_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "token_number": self.token_number,
            "counter_id": self.counter_id,
            "position_in_queue": self.position_in_queue,
            "status": self.status.value,
            "estimated_wait_minutes": self.estimated_wait_minutes,
            "customer_name": self.customer_name,
            "joined_at": to_iso(self.joined_at),
            "called_at": to_iso(self.called_at),
            "served_at": to_iso(self.served_at),
        }


@dataclass(frozen=True)
class WaitingCustomerRow:
    """Read-model for the staff queue screen (entry joined with the linked profile)."""

    entry_id: int
    token_number: int
    position_in_queue: int
    customer_name: Optional[str]
    customer_phone: Optional[str]
    profile_name: Optional[str] = None
    profile_phone: Optional[str] = None


@dataclass(frozen=True)
class QueueStats:
    total: int
    waiting: int
    called: int
    served: int

    def to_dict(self) -> dict:
        return {"total": self.total, "waiting": self.waiting, "called": self.called, "served": self.served}


@dataclass(frozen=True)
class ServedReportRow:
    token_number: int
    counter_number: int
    counter_name: str
    customer_name: Optional[str]
    customer_phone: Optional[str]
    joined_at: datetime
    called_at: Optional[datetime]
    served_at: Optional[datetime]
