from __future__ import annotations

import logging
from typing import Sequence

from ..common.validators import require_non_empty, require_positive_int
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Counter
from .repository import CounterRepository

logger = logging.getLogger(__name__)


class CounterService:
    """Use cases: browse counters (public), manage counters (admin), man a counter (staff)."""

    def __init__(self, counters: CounterRepository):
        self._counters = counters

    def list_active(self) -> Sequence[Counter]:
        return self._counters.list_all(active_only=True)

    def list_all(self, *, current_role: Role) -> Sequence[Counter]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        return self._counters.list_all()

    def get(self, counter_id: int) -> Counter:
        counter = self._counters.get_by_id(int(counter_id))
        if not counter:
            raise NotFoundError("Counter not found")
        return counter

    def create(self, *, current_role: Role, name: str, counter_number) -> Counter:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        name = require_non_empty(name, "Counter name")
        number = require_positive_int(counter_number, "Counter number")
        if self._counters.get_by_number(number):
            raise ValidationError(f"Counter number {number} already exists")

        counter_id = self._counters.create(counter_number=number, name=name, is_active=True)
        logger.info("counter created", extra={"counter_id": counter_id})
        return Counter(counter_id=counter_id, counter_number=number, name=name, is_active=True)

    def delete(self, *, current_role: Role, counter_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        self.get(counter_id)
        if not self._counters.delete_if_idle(int(counter_id)):
            raise ValidationError("Counter still has customers in its queue")
        logger.info("counter deleted", extra={"counter_id": int(counter_id)})

    def set_active(self, *, current_role: Role, counter_id: int, is_active: bool) -> Counter:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        self.get(counter_id)
        self._counters.set_active(int(counter_id), is_active=bool(is_active))
        return self.get(counter_id)

    def claim(self, *, current_role: Role, staff_id: int, counter_id: int) -> Counter:
        """Staff selects the counter they will be managing."""

        if current_role not in (Role.STAFF, Role.ADMIN):
            raise AuthorizationError("Staff access required")

        counter = self.get(counter_id)
        if not counter.is_active:
            raise ValidationError("Counter is not active")
        if counter.current_staff_id not in (None, int(staff_id)):
            raise ValidationError("Counter is already managed by another staff member")

        self._counters.set_current_staff(counter.counter_id, int(staff_id))
        return self.get(counter_id)

    def release(self, *, current_role: Role, staff_id: int, counter_id: int) -> None:
        if current_role not in (Role.STAFF, Role.ADMIN):
            raise AuthorizationError("Staff access required")

        counter = self.get(counter_id)
        if current_role != Role.ADMIN and counter.current_staff_id not in (None, int(staff_id)):
            raise AuthorizationError("Counter is managed by another staff member")
        self._counters.set_current_staff(counter.counter_id, None)

