from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import GUEST_NAME, GUEST_PHONE
from ..core.enums import EntryStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..counters.model import Counter
from ..counters.repository import CounterRepository
from ..notifications.events import EventType, QueueEvent
from ..notifications.publisher import EventPublisher, NullPublisher
from .assignment import is_almost_turn
from .model import QueueEntry, QueueStats, ServedReportRow
from .repository import QueueRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicketStatus:
    """What a customer sees for their ticket."""

    entry: QueueEntry
    counter: Optional[Counter]
    people_ahead: int
    almost_turn: bool

    def to_dict(self) -> dict:
        data = self.entry.to_dict()
        data["people_ahead"] = self.people_ahead
        data["almost_turn"] = self.almost_turn
        data["counter"] = (
            {"counter_number": self.counter.counter_number, "name": self.counter.name} if self.counter else None
        )
        return data


@dataclass(frozen=True)
class ServeResult:
    served: Optional[QueueEntry]
    called: Optional[QueueEntry]


class QueueService:
    def __init__(
        self,
        queue: QueueRepository,
        counters: CounterRepository,
        publisher: EventPublisher | None = None,
    ):
        self._queue = queue
        self._counters = counters
        self._publisher = publisher or NullPublisher()

    # -- customer side -------------------------------------------------------

    def join(
        self,
        *,
        customer_name: str,
        customer_phone: str,
        user_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> TicketStatus:
        name = require_non_empty(customer_name, "Name")
        phone = require_non_empty(customer_phone, "Phone number")
        now = now or now_local()

        entry = self._queue.join_shortest_queue(
            customer_name=name,
            customer_phone=phone,
            user_id=user_id,
            joined_at=now,
        )
        logger.info(
            "customer joined queue",
            extra={"entry_id": entry.entry_id, "counter_id": entry.counter_id},
        )
        self._publish(
            QueueEvent(
                EventType.ENTRY_JOINED,
                counter_id=entry.counter_id,
                payload={"token_number": entry.token_number, "position_in_queue": entry.position_in_queue},
            )
        )
        return self._status_for(entry)

    def get_status(self, entry_id: int) -> TicketStatus:
        return self._status_for(self._get_entry(entry_id))

    def leave(self, entry_id: int) -> None:
        entry = self._get_entry(entry_id)
        if entry.status != EntryStatus.WAITING:
            raise ValidationError("Only waiting customers can leave the queue")

        before = self._positions(entry.counter_id)
        if not self._queue.remove_waiting(entry.entry_id):
            raise ValidationError("Failed to leave the queue")

        logger.info("customer left queue", extra={"entry_id": entry.entry_id, "counter_id": entry.counter_id})
        self._publish(QueueEvent(EventType.ENTRY_REMOVED, entry_id=entry.entry_id))
        self._publish_queue_changed(entry.counter_id, before)

    # -- staff side ----------------------------------------------------------

    def list_waiting(self, *, current_role: Role, counter_id: int) -> list[dict]:
        self._require_staff(current_role)
        self._get_counter(counter_id)

        out: list[dict] = []
        for row in self._queue.list_waiting_view(int(counter_id)):
            out.append(
                {
                    "entry_id": row.entry_id,
                    "token_number": row.token_number,
                    "position_in_queue": row.position_in_queue,
                    "full_name": row.profile_name or row.customer_name or GUEST_NAME,
                    "phone_number": row.profile_phone or row.customer_phone or GUEST_PHONE,
                }
            )
        return out

    def current_called(self, *, current_role: Role, counter_id: int) -> Optional[QueueEntry]:
        self._require_staff(current_role)
        return self._queue.get_called(int(counter_id))

    def call_next(
        self,
        *,
        current_role: Role,
        staff_id: int,
        counter_id: int,
        now: datetime | None = None,
    ) -> QueueEntry:
        self._require_staff(current_role)
        counter = self._get_counter(counter_id)
        self._require_counter_owner(counter, current_role=current_role, staff_id=staff_id)

        if self._queue.get_called(counter.counter_id):
            raise ValidationError("Finish serving the current customer first")

        waiting = self._queue.list_waiting(counter.counter_id)
        if not waiting:
            raise ValidationError("No customers waiting")

        now = now or now_local()
        before = {e.entry_id: e.position_in_queue for e in waiting}
        nxt = waiting[0]
        if not self._queue.mark_called(entry_id=nxt.entry_id, counter_id=counter.counter_id, called_at=now):
            raise ValidationError("Queue changed, please try again")

        logger.info(
            "customer called",
            extra={"entry_id": nxt.entry_id, "counter_id": counter.counter_id, "user_id": staff_id},
        )
        self._publish(
            QueueEvent(
                EventType.ENTRY_CALLED,
                entry_id=nxt.entry_id,
                payload={
                    "token_number": nxt.token_number,
                    "counter_number": counter.counter_number,
                    "counter_name": counter.name,
                    "message": "It's your turn! Please proceed to your counter",
                },
            )
        )
        self._publish_queue_changed(counter.counter_id, before)
        return self._get_entry(nxt.entry_id)

    def complete(
        self,
        *,
        current_role: Role,
        staff_id: int,
        counter_id: int,
        now: datetime | None = None,
    ) -> QueueEntry:
        self._require_staff(current_role)
        counter = self._get_counter(counter_id)
        self._require_counter_owner(counter, current_role=current_role, staff_id=staff_id)

        called = self._queue.get_called(counter.counter_id)
        if not called:
            raise ValidationError("No customer is being served at this counter")

        now = now or now_local()
        if not self._queue.mark_served(entry_id=called.entry_id, served_at=now):
            raise ValidationError("Failed to mark customer as served")

        logger.info(
            "customer served",
            extra={"entry_id": called.entry_id, "counter_id": counter.counter_id, "user_id": staff_id},
        )
        self._publish(
            QueueEvent(
                EventType.ENTRY_SERVED,
                entry_id=called.entry_id,
                payload={"token_number": called.token_number, "feedback_requested": True},
            )
        )
        self._publish(
            QueueEvent(EventType.QUEUE_CHANGED, counter_id=counter.counter_id, payload={"served": called.token_number})
        )
        return self._get_entry(called.entry_id)

    def serve_next(
        self,
        *,
        current_role: Role,
        staff_id: int,
        counter_id: int,
        now: datetime | None = None,
    ) -> ServeResult:
        """Finish the current customer (if any) and call the next one (if any)."""

        self._require_staff(current_role)
        counter = self._get_counter(counter_id)
        self._require_counter_owner(counter, current_role=current_role, staff_id=staff_id)

        served = None
        if self._queue.get_called(counter.counter_id):
            served = self.complete(current_role=current_role, staff_id=staff_id, counter_id=counter_id, now=now)

        called = None
        if self._queue.list_waiting(counter.counter_id):
            called = self.call_next(current_role=current_role, staff_id=staff_id, counter_id=counter_id, now=now)
        elif served is None:
            raise ValidationError("No customers waiting")

        return ServeResult(served=served, called=called)

    def reorder(self, counter_id: int) -> Sequence[QueueEntry]:
        self._get_counter(counter_id)
        before = self._positions(int(counter_id))
        waiting = self._queue.reorder_positions(int(counter_id))
        self._publish_positions(waiting, before)
        return waiting

    # -- admin side ----------------------------------------------------------

    def stats(self, *, current_role: Role) -> QueueStats:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        return self._queue.stats()

    def served_report(
        self,
        *,
        current_role: Role,
        start_date: date,
        end_date: date,
        counter_id: Optional[int] = None,
    ) -> Sequence[ServedReportRow]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")
        return self._queue.served_report(start_date=start_date, end_date=end_date, counter_id=counter_id)

    # -- internals -----------------------------------------------------------

    @staticmethod
    def _require_staff(current_role: Role) -> None:
        if current_role not in (Role.STAFF, Role.ADMIN):
            raise AuthorizationError("Staff access required")

    @staticmethod
    def _require_counter_owner(counter: Counter, *, current_role: Role, staff_id: int) -> None:
        if current_role == Role.ADMIN:
            return
        if counter.current_staff_id is not None and counter.current_staff_id != int(staff_id):
            raise AuthorizationError("Counter is managed by another staff member")

    def _get_entry(self, entry_id: int) -> QueueEntry:
        entry = self._queue.get_by_id(int(entry_id))
        if not entry:
            raise NotFoundError("Queue entry not found")
        return entry

    def _get_counter(self, counter_id: int) -> Counter:
        counter = self._counters.get_by_id(int(counter_id))
        if not counter:
            raise NotFoundError("Counter not found")
        return counter

    def _status_for(self, entry: QueueEntry) -> TicketStatus:
        counter = self._counters.get_by_id(entry.counter_id)
        ahead = 0
        if entry.status == EntryStatus.WAITING:
            ahead = self._queue.count_ahead(counter_id=entry.counter_id, position=entry.position_in_queue)
        return TicketStatus(
            entry=entry,
            counter=counter,
            people_ahead=ahead,
            almost_turn=is_almost_turn(entry.position_in_queue, entry.status),
        )

    def _positions(self, counter_id: int) -> Dict[int, int]:
        return {e.entry_id: e.position_in_queue for e in self._queue.list_waiting(counter_id)}

    def _publish_queue_changed(self, counter_id: int, before: Dict[int, int]) -> None:
        waiting = self._queue.list_waiting(counter_id)
        self._publish(QueueEvent(EventType.QUEUE_CHANGED, counter_id=counter_id, payload={"waiting": len(waiting)}))
        self._publish_positions(waiting, before)

    def _publish_positions(self, waiting: Sequence[QueueEntry], before: Dict[int, int]) -> None:
        # Only entries that actually moved are told about it.
        for entry in waiting:
            if before.get(entry.entry_id) == entry.position_in_queue:
                continue
            ahead = entry.position_in_queue - 1
            payload = {
                "counter_id": entry.counter_id,
                "position_in_queue": entry.position_in_queue,
                "estimated_wait_minutes": entry.estimated_wait_minutes,
                "people_ahead": ahead,
            }
            self._publish(QueueEvent(EventType.POSITION_CHANGED, entry_id=entry.entry_id, payload=payload))
            if is_almost_turn(entry.position_in_queue, entry.status):
                self._publish(
                    QueueEvent(
                        EventType.ALMOST_TURN,
                        entry_id=entry.entry_id,
                        payload={
                            **payload,
                            "message": f"Only {ahead} people ahead of you. Please be ready.",
                        },
                    )
                )

    def _publish(self, event: QueueEvent) -> None:
        # The change is already committed; a push failure must not undo it.
        try:
            self._publisher.publish(event)
        except Exception:
            logger.exception(
                "failed to publish event",
                extra={"event": event.type, "entry_id": event.entry_id, "counter_id": event.counter_id},
            )
