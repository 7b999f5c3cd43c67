from __future__ import annotations

from pathlib import Path

import pytest

from virtual_queue.database.bootstrap import _strip_comments, _strip_create_db_and_use, iter_sql_statements
from virtual_queue.database.mysql_base import db_cursor

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


class FakeCursor:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeConn:
    def __init__(self):
        self.cursor_obj = FakeCursor()
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        return self.cursor_obj

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self):
        self.conn = FakeConn()

    def connect(self):
        return self.conn


def test_db_cursor_commits_on_success():
    factory = FakeFactory()

    with db_cursor(factory) as (conn, cur):
        assert conn is factory.conn

    assert factory.conn.committed
    assert not factory.conn.rolled_back
    assert factory.conn.closed
    assert factory.conn.cursor_obj.closed


def test_db_cursor_rolls_back_on_error():
    factory = FakeFactory()

    with pytest.raises(RuntimeError):
        with db_cursor(factory):
            raise RuntimeError("boom")

    assert not factory.conn.committed
    assert factory.conn.rolled_back
    assert factory.conn.closed


def test_statement_splitter_respects_quotes():
    sql = "INSERT INTO t VALUES ('a;b'); INSERT INTO t VALUES (\"c;d\");\nSELECT 1"
    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
        "SELECT 1",
    ]


def test_create_database_and_use_lines_are_dropped():
    sql = "CREATE DATABASE IF NOT EXISTS other;\nUSE other;\n-- note\nCREATE TABLE x (id INT);"
    cleaned = _strip_comments(_strip_create_db_and_use(sql))
    assert list(iter_sql_statements(cleaned)) == ["CREATE TABLE x (id INT)"]


def test_schema_file_defines_every_table():
    sql = _strip_comments(_strip_create_db_and_use(SCHEMA_PATH.read_text(encoding="utf-8")))
    statements = " ".join(iter_sql_statements(sql))

    for table in ("users", "user_roles", "counters", "queue_entries", "feedback", "token_sequence"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in statements
