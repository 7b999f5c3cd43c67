from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account roles used for access control."""

    CUSTOMER = "customer"
    STAFF = "staff"
    ADMIN = "admin"


# Highest privilege first; used to pick the effective role of a user.
ROLE_PRIORITY = (Role.ADMIN, Role.STAFF, Role.CUSTOMER)


class EntryStatus(str, Enum):
    """Lifecycle of a queue entry as stored in the database."""

    WAITING = "waiting"
    CALLED = "called"
    SERVED = "served"
