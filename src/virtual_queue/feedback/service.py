from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_positive_int, require_rating
from ..core.constants import ADMIN_FEEDBACK_LIMIT, COUNTER_FEEDBACK_LIMIT
from ..core.enums import EntryStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..queueing.repository import QueueRepository
from .model import Feedback
from .repository import FeedbackRepository

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(self, feedback: FeedbackRepository, queue: QueueRepository):
        self._feedback = feedback
        self._queue = queue

    def submit(
        self,
        *,
        entry_id: int,
        rating,
        comments: Optional[str] = None,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        now: datetime | None = None,
    ) -> int:
        rating = require_rating(rating)
        entry_id = require_positive_int(entry_id, "Queue entry")

        entry = self._queue.get_by_id(entry_id)
        if not entry:
            raise NotFoundError("Queue entry not found")
        if entry.status != EntryStatus.SERVED:
            raise ValidationError("Feedback can only be given after you have been served")
        if self._feedback.exists_for_entry(entry.entry_id):
            raise ValidationError("Feedback was already submitted for this visit")

        feedback_id = self._feedback.create(
            queue_entry_id=entry.entry_id,
            counter_id=entry.counter_id,
            rating=rating,
            comments=(comments or "").strip() or None,
            customer_name=(customer_name or "").strip() or entry.customer_name,
            customer_phone=(customer_phone or "").strip() or entry.customer_phone,
            created_at=now or now_local(),
        )
        logger.info("feedback received", extra={"entry_id": entry.entry_id, "counter_id": entry.counter_id})
        return feedback_id

    def list_for_counter(self, *, current_role: Role, counter_id: int) -> Sequence[Feedback]:
        if current_role not in (Role.STAFF, Role.ADMIN):
            raise AuthorizationError("Staff access required")
        return self._feedback.list_for_counter(int(counter_id), limit=COUNTER_FEEDBACK_LIMIT)

    def list_recent(self, *, current_role: Role) -> Sequence[Feedback]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        return self._feedback.list_recent(limit=ADMIN_FEEDBACK_LIMIT)
