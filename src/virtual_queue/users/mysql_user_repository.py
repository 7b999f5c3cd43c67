from __future__ import annotations

import logging
from typing import Optional, Sequence, Set

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

_COLUMNS = "u.user_id, u.email, u.full_name, u.phone_number, u.password_hash, u.is_active"


def _row_to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        email=r["email"],
        full_name=r["full_name"],
        phone_number=r.get("phone_number") or "",
        password_hash=r["password_hash"],
        is_active=bool(r.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users u WHERE u.user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users u WHERE u.email=%s", (email,))
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def get_roles(self, user_id: int) -> Set[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role FROM user_roles WHERE user_id=%s", (int(user_id),))
            return {Role(r["role"]) for r in fetchall(cur)}

    def create_with_role(
        self,
        *,
        email: str,
        full_name: str,
        phone_number: str,
        password_hash: str,
        role: Role,
    ) -> int:
        # Both inserts share one transaction; db_cursor rolls back the account
        # row if the role insert raises.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(email, full_name, phone_number, password_hash, is_active)
                VALUES(%s,%s,%s,%s,1)
                """,
                (email, full_name, phone_number, password_hash),
            )
            user_id = int(cur.lastrowid)
            try:
                cur.execute("INSERT INTO user_roles(user_id, role) VALUES(%s,%s)", (user_id, role.value))
            except Exception:
                logger.error("role insert failed, rolling back account", extra={"user_id": user_id})
                raise
            return user_id

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE counters SET current_staff_id=NULL WHERE current_staff_id=%s", (int(user_id),))
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM users u
                JOIN user_roles ur ON ur.user_id = u.user_id
                WHERE ur.role=%s
                ORDER BY u.full_name
                """,
                (role.value,),
            )
            return [_row_to_user(r) for r in fetchall(cur)]
