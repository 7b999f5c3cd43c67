from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Feedback
from .repository import FeedbackRepository


def _row_to_feedback(r: dict) -> Feedback:
    return Feedback(
        feedback_id=int(r["feedback_id"]),
        queue_entry_id=int(r["queue_entry_id"]),
        counter_id=r.get("counter_id"),
        rating=int(r["rating"]),
        comments=r.get("comments"),
        customer_name=r.get("customer_name"),
        customer_phone=r.get("customer_phone"),
        created_at=r["created_at"],
        counter_name=r.get("counter_name"),
        counter_number=r.get("counter_number"),
    )


class MySQLFeedbackRepository(FeedbackRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO feedback(
                    queue_entry_id, counter_id, rating, comments, customer_name, customer_phone, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(queue_entry_id), counter_id, int(rating), comments, customer_name, customer_phone, created_at),
            )
            return int(cur.lastrowid)

    def exists_for_entry(self, queue_entry_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS ok FROM feedback WHERE queue_entry_id=%s", (int(queue_entry_id),))
            return fetchone(cur) is not None

    def list_for_counter(self, counter_id: int, *, limit: int) -> Sequence[Feedback]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT feedback_id, queue_entry_id, counter_id, rating, comments,
                       customer_name, customer_phone, created_at
                FROM feedback
                WHERE counter_id=%s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (int(counter_id), int(limit)),
            )
            return [_row_to_feedback(r) for r in fetchall(cur)]

    def list_recent(self, *, limit: int) -> Sequence[Feedback]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT f.feedback_id, f.queue_entry_id, f.counter_id, f.rating, f.comments,
                       f.customer_name, f.customer_phone, f.created_at,
                       c.name AS counter_name, c.counter_number
                FROM feedback f
                LEFT JOIN counters c ON c.counter_id = f.counter_id
                ORDER BY f.created_at DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_row_to_feedback(r) for r in fetchall(cur)]
