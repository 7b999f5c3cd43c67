from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import QueueEntry, QueueStats, ServedReportRow, WaitingCustomerRow


class QueueRepository(Protocol):
    """Persistence for queue entries.

    Every mutating method is one unit of work: implementations must keep
    waiting positions contiguous per counter when they return.
    """

    def get_by_id(self, entry_id: int) -> Optional[QueueEntry]:
        raise NotImplementedError

    def join_shortest_queue(
        self,
        *,
        customer_name: str,
        customer_phone: str,
        user_id: Optional[int],
        joined_at: datetime,
    ) -> QueueEntry:
        """Pick the shortest active counter, issue the next token and append the entry."""

        raise NotImplementedError

    def count_ahead(self, *, counter_id: int, position: int) -> int:
        raise NotImplementedError

    def list_waiting(self, counter_id: int) -> Sequence[QueueEntry]:
        """Waiting entries of a counter ordered by position."""

        raise NotImplementedError

    def list_waiting_view(self, counter_id: int) -> Sequence[WaitingCustomerRow]:
        raise NotImplementedError

    def get_called(self, counter_id: int) -> Optional[QueueEntry]:
        raise NotImplementedError

    def remove_waiting(self, entry_id: int) -> bool:
        """Delete a waiting entry and close the gap it leaves."""

        raise NotImplementedError

    def mark_called(self, *, entry_id: int, counter_id: int, called_at: datetime) -> bool:
        """Move a waiting entry to called.

        Returns False if the entry is no longer waiting or the counter already
        has a called entry.
        """

        raise NotImplementedError

    def mark_served(self, *, entry_id: int, served_at: datetime) -> bool:
        raise NotImplementedError

    def reorder_positions(self, counter_id: int) -> Sequence[QueueEntry]:
        """Recompute positions 1..n for the counter; returns the waiting entries."""

        raise NotImplementedError

    def stats(self) -> QueueStats:
        raise NotImplementedError

    def served_report(
        self,
        *,
        start_date: date,
        end_date: date,
        counter_id: Optional[int] = None,
    ) -> Sequence[ServedReportRow]:
        raise NotImplementedError
