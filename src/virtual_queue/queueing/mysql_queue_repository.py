from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..core.enums import EntryStatus
from ..counters.mysql_counter_repository import row_to_counter
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .assignment import (
    estimate_wait_minutes,
    next_position,
    next_token_number,
    pick_shortest_counter,
    renumber_positions,
)
from .model import QueueEntry, QueueStats, ServedReportRow, WaitingCustomerRow
from .repository import QueueRepository


_COLUMNS = """
    entry_id, token_number, counter_id, position_in_queue, status, estimated_wait_minutes,
    user_id, customer_name, customer_phone, joined_at, called_at, served_at
"""


def _row_to_entry(r: dict) -> QueueEntry:
    return QueueEntry(
        entry_id=int(r["entry_id"]),
        token_number=int(r["token_number"]),
        counter_id=int(r["counter_id"]),
        position_in_queue=int(r["position_in_queue"]),
        status=EntryStatus(r["status"]),
        joined_at=r["joined_at"],
        estimated_wait_minutes=r.get("estimated_wait_minutes"),
        user_id=r.get("user_id"),
        customer_name=r.get("customer_name"),
        customer_phone=r.get("customer_phone"),
        called_at=r.get("called_at"),
        served_at=r.get("served_at"),
    )


class MySQLQueueRepository(QueueRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -- helpers running inside an open transaction ------------------------

    @staticmethod
    def _lock_counter(cur, counter_id: int) -> bool:
        # Row lock on the counter serializes every queue mutation of that counter.
        cur.execute("SELECT counter_id FROM counters WHERE counter_id=%s FOR UPDATE", (int(counter_id),))
        return fetchone(cur) is not None

    @staticmethod
    def _select_waiting(cur, counter_id: int) -> list[QueueEntry]:
        cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM queue_entries
            WHERE counter_id=%s AND status='waiting'
            ORDER BY position_in_queue, token_number
            """,
            (int(counter_id),),
        )
        return [_row_to_entry(r) for r in fetchall(cur)]

    def _renumber(self, cur, counter_id: int) -> list[QueueEntry]:
        waiting = self._select_waiting(cur, counter_id)
        current = {e.entry_id: e for e in waiting}
        out: list[QueueEntry] = []
        for entry_id, position in renumber_positions(waiting):
            entry = current[entry_id]
            estimate = estimate_wait_minutes(position)
            if entry.position_in_queue != position or entry.estimated_wait_minutes != estimate:
                cur.execute(
                    """
                    UPDATE queue_entries
                    SET position_in_queue=%s, estimated_wait_minutes=%s
                    WHERE entry_id=%s
                    """,
                    (position, estimate, entry_id),
                )
            out.append(replace(entry, position_in_queue=position, estimated_wait_minutes=estimate))
        return out

    # -- reads --------------------------------------------------------------

    def get_by_id(self, entry_id: int) -> Optional[QueueEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM queue_entries WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def count_ahead(self, *, counter_id: int, position: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n
                FROM queue_entries
                WHERE counter_id=%s AND status='waiting' AND position_in_queue < %s
                """,
                (int(counter_id), int(position)),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_waiting(self, counter_id: int) -> Sequence[QueueEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_waiting(cur, counter_id)

    def list_waiting_view(self, counter_id: int) -> Sequence[WaitingCustomerRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT qe.entry_id, qe.token_number, qe.position_in_queue,
                       qe.customer_name, qe.customer_phone,
                       u.full_name AS profile_name, u.phone_number AS profile_phone
                FROM queue_entries qe
                LEFT JOIN users u ON u.user_id = qe.user_id
                WHERE qe.counter_id=%s AND qe.status='waiting'
                ORDER BY qe.position_in_queue, qe.token_number
                """,
                (int(counter_id),),
            )
            return [
                WaitingCustomerRow(
                    entry_id=int(r["entry_id"]),
                    token_number=int(r["token_number"]),
                    position_in_queue=int(r["position_in_queue"]),
                    customer_name=r.get("customer_name"),
                    customer_phone=r.get("customer_phone"),
                    profile_name=r.get("profile_name"),
                    profile_phone=r.get("profile_phone"),
                )
                for r in fetchall(cur)
            ]

    def get_called(self, counter_id: int) -> Optional[QueueEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM queue_entries
                WHERE counter_id=%s AND status='called'
                ORDER BY called_at
                LIMIT 1
                """,
                (int(counter_id),),
            )
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    # -- writes -------------------------------------------------------------

    def join_shortest_queue(
        self,
        *,
        customer_name: str,
        customer_phone: str,
        user_id: Optional[int],
        joined_at: datetime,
    ) -> QueueEntry:
        with db_cursor(self._conn_factory) as (_, cur):
            # Lock all active counters so concurrent joins see consistent queue lengths.
            cur.execute(
                """
                SELECT counter_id, counter_number, name, is_active, current_staff_id
                FROM counters
                WHERE is_active=1
                ORDER BY counter_number
                FOR UPDATE
                """
            )
            counters = [row_to_counter(r) for r in fetchall(cur)]

            cur.execute(
                """
                SELECT counter_id, COUNT(*) AS n
                FROM queue_entries
                WHERE status='waiting'
                GROUP BY counter_id
                """
            )
            counts = {int(r["counter_id"]): int(r["n"]) for r in fetchall(cur)}
            counter = pick_shortest_counter((c, counts.get(c.counter_id, 0)) for c in counters)

            cur.execute("SELECT last_value FROM token_sequence WHERE sequence_id=1 FOR UPDATE")
            seq = fetchone(cur)
            token = next_token_number(seq["last_value"] if seq else None)
            if seq:
                cur.execute("UPDATE token_sequence SET last_value=%s WHERE sequence_id=1", (token,))
            else:
                cur.execute("INSERT INTO token_sequence(sequence_id, last_value) VALUES(1, %s)", (token,))

            position = next_position(counts.get(counter.counter_id, 0))
            estimate = estimate_wait_minutes(position)
            cur.execute(
                """
                INSERT INTO queue_entries(
                    token_number, counter_id, position_in_queue, status, estimated_wait_minutes,
                    user_id, customer_name, customer_phone, joined_at
                )
                VALUES(%s,%s,%s,'waiting',%s,%s,%s,%s,%s)
                """,
                (token, counter.counter_id, position, estimate, user_id, customer_name, customer_phone, joined_at),
            )
            entry_id = int(cur.lastrowid)

            return QueueEntry(
                entry_id=entry_id,
                token_number=token,
                counter_id=counter.counter_id,
                position_in_queue=position,
                status=EntryStatus.WAITING,
                joined_at=joined_at,
                estimated_wait_minutes=estimate,
                user_id=user_id,
                customer_name=customer_name,
                customer_phone=customer_phone,
            )

    def remove_waiting(self, entry_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT counter_id FROM queue_entries WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            if not r:
                return False
            counter_id = int(r["counter_id"])
            self._lock_counter(cur, counter_id)

            cur.execute("DELETE FROM queue_entries WHERE entry_id=%s AND status='waiting'", (int(entry_id),))
            if cur.rowcount == 0:
                return False
            self._renumber(cur, counter_id)
            return True

    def mark_called(self, *, entry_id: int, counter_id: int, called_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if not self._lock_counter(cur, counter_id):
                return False

            cur.execute(
                "SELECT COUNT(*) AS n FROM queue_entries WHERE counter_id=%s AND status='called'",
                (int(counter_id),),
            )
            if int(fetchone(cur)["n"]) > 0:
                return False

            cur.execute(
                """
                UPDATE queue_entries
                SET status='called', called_at=%s, position_in_queue=0, estimated_wait_minutes=0
                WHERE entry_id=%s AND counter_id=%s AND status='waiting'
                """,
                (called_at, int(entry_id), int(counter_id)),
            )
            if cur.rowcount == 0:
                return False
            self._renumber(cur, counter_id)
            return True

    def mark_served(self, *, entry_id: int, served_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE queue_entries
                SET status='served', served_at=%s, position_in_queue=0, estimated_wait_minutes=0
                WHERE entry_id=%s AND status='called'
                """,
                (served_at, int(entry_id)),
            )
            return cur.rowcount > 0

    def reorder_positions(self, counter_id: int) -> Sequence[QueueEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            self._lock_counter(cur, counter_id)
            return self._renumber(cur, counter_id)

    # -- reporting ----------------------------------------------------------

    def stats(self) -> QueueStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS n FROM queue_entries GROUP BY status")
            counts = {r["status"]: int(r["n"]) for r in fetchall(cur)}
            return QueueStats(
                total=sum(counts.values()),
                waiting=counts.get(EntryStatus.WAITING.value, 0),
                called=counts.get(EntryStatus.CALLED.value, 0),
                served=counts.get(EntryStatus.SERVED.value, 0),
            )

    def served_report(
        self,
        *,
        start_date: date,
        end_date: date,
        counter_id: Optional[int] = None,
    ) -> Sequence[ServedReportRow]:
        clauses = ["qe.status='served'", "qe.served_at >= %s", "qe.served_at < %s"]
        params: list[object] = [start_date, end_date + timedelta(days=1)]
        if counter_id is not None:
            clauses.append("qe.counter_id=%s")
            params.append(int(counter_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT qe.token_number, c.counter_number, c.name AS counter_name,
                       COALESCE(u.full_name, qe.customer_name) AS customer_name,
                       COALESCE(u.phone_number, qe.customer_phone) AS customer_phone,
                       qe.joined_at, qe.called_at, qe.served_at
                FROM queue_entries qe
                JOIN counters c ON c.counter_id = qe.counter_id
                LEFT JOIN users u ON u.user_id = qe.user_id
                WHERE {where}
                ORDER BY qe.served_at ASC
                """,
                tuple(params),
            )
            return [
                ServedReportRow(
                    token_number=int(r["token_number"]),
                    counter_number=int(r["counter_number"]),
                    counter_name=r["counter_name"],
                    customer_name=r.get("customer_name"),
                    customer_phone=r.get("customer_phone"),
                    joined_at=r["joined_at"],
                    called_at=r.get("called_at"),
                    served_at=r.get("served_at"),
                )
                for r in fetchall(cur)
            ]
