from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Counter
from .repository import CounterRepository

_COLUMNS = "counter_id, counter_number, name, is_active, current_staff_id"


def row_to_counter(r: dict) -> Counter:
    return Counter(
        counter_id=int(r["counter_id"]),
        counter_number=int(r["counter_number"]),
        name=r["name"],
        is_active=bool(r.get("is_active", True)),
        current_staff_id=r.get("current_staff_id"),
    )


class MySQLCounterRepository(CounterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, counter_id: int) -> Optional[Counter]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM counters WHERE counter_id=%s", (int(counter_id),))
            r = fetchone(cur)
            return row_to_counter(r) if r else None

    def get_by_number(self, counter_number: int) -> Optional[Counter]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM counters WHERE counter_number=%s", (int(counter_number),))
            r = fetchone(cur)
            return row_to_counter(r) if r else None

    def list_all(self, *, active_only: bool = False) -> Sequence[Counter]:
        where = "WHERE is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM counters {where} ORDER BY counter_number")
            return [row_to_counter(r) for r in fetchall(cur)]

    def create(self, *, counter_number: int, name: str, is_active: bool = True) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO counters(counter_number, name, is_active) VALUES(%s,%s,%s)",
                (int(counter_number), name, 1 if is_active else 0),
            )
            return int(cur.lastrowid)

    def delete_if_idle(self, counter_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # The counter row lock keeps joins out until the delete commits.
            cur.execute("SELECT counter_id FROM counters WHERE counter_id=%s FOR UPDATE", (int(counter_id),))
            if fetchone(cur) is None:
                return False
            cur.execute(
                """
                SELECT COUNT(*) AS n
                FROM queue_entries
                WHERE counter_id=%s AND status IN ('waiting', 'called')
                """,
                (int(counter_id),),
            )
            r = fetchone(cur)
            if r and int(r["n"]) > 0:
                return False
            cur.execute("DELETE FROM counters WHERE counter_id=%s", (int(counter_id),))
            return cur.rowcount > 0

    def set_active(self, counter_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE counters SET is_active=%s WHERE counter_id=%s",
                (1 if is_active else 0, int(counter_id)),
            )
            return cur.rowcount > 0

    def set_current_staff(self, counter_id: int, staff_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE counters SET current_staff_id=%s WHERE counter_id=%s",
                (staff_id, int(counter_id)),
            )
            # rowcount is 0 when the value did not change; confirm existence instead.
            cur.execute("SELECT 1 AS ok FROM counters WHERE counter_id=%s", (int(counter_id),))
            return fetchone(cur) is not None

