from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Feedback


class FeedbackRepository(Protocol):
    def create(
        self,
        *,
        queue_entry_id: int,
        counter_id: Optional[int],
        rating: int,
        comments: Optional[str],
        customer_name: Optional[str],
        customer_phone: Optional[str],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def exists_for_entry(self, queue_entry_id: int) -> bool:
        raise NotImplementedError

    def list_for_counter(self, counter_id: int, *, limit: int) -> Sequence[Feedback]:
        """Newest first."""

        raise NotImplementedError

    def list_recent(self, *, limit: int) -> Sequence[Feedback]:
        """Newest first, joined with counter name/number."""

        raise NotImplementedError
