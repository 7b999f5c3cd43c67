from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Counter


class CounterRepository(Protocol):
    def get_by_id(self, counter_id: int) -> Optional[Counter]:
        raise NotImplementedError

    def get_by_number(self, counter_number: int) -> Optional[Counter]:
        raise NotImplementedError

    def list_all(self, *, active_only: bool = False) -> Sequence[Counter]:
        """Counters ordered by counter_number."""

        raise NotImplementedError

    def create(self, *, counter_number: int, name: str, is_active: bool = True) -> int:
        raise NotImplementedError

    def delete_if_idle(self, counter_id: int) -> bool:
        """Delete the counter unless it still has waiting or called entries.

        The check and the delete are one unit of work, serialized against
        joins on the counter row. Returns False if entries remain.
        """

        raise NotImplementedError

    def set_active(self, counter_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def set_current_staff(self, counter_id: int, staff_id: Optional[int]) -> bool:
        raise NotImplementedError

