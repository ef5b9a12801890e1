from collections import namedtuple

import psycopg
import pytest

from pg_nlquery.db import connection
from pg_nlquery.db.connection import DatabaseConnectionError, check_postgres_health
from pg_nlquery.db.execute import QueryExecutionError, run_readonly_query

Column = namedtuple("Column", "name")


class FakeCursor:
    def __init__(self, row=None, description=None, rows=()):
        self.row = row
        self.description = description
        self.rows = list(rows)
        self.executed = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        self.executed.append(query)

    def fetchone(self):
        return self.row

    def fetchmany(self, size):
        return self.rows[:size]


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def cursor(self):
        return self._cursor


def _patch_connect(monkeypatch, cursor):
    calls = []

    def fake_connect(dsn, **kwargs):
        calls.append((dsn, kwargs))
        return FakeConnection(cursor)

    monkeypatch.setattr(connection.psycopg, "connect", fake_connect)
    return calls


def test_sessions_are_read_only(monkeypatch):
    """The session forces read-only transactions and a statement timeout"""
    cursor = FakeCursor(row=("app", "reader", "16.2", "on", True))
    calls = _patch_connect(monkeypatch, cursor)

    result = check_postgres_health("postgresql://localhost/app")

    [(dsn, kwargs)] = calls
    assert dsn == "postgresql://localhost/app"
    assert "default_transaction_read_only=on" in kwargs["options"]
    assert "statement_timeout=30000" in kwargs["options"]
    assert result.current_database == "app"
    assert result.transaction_read_only
    assert result.has_postgis


def test_writable_session_fails_healthcheck(monkeypatch):
    """A session that is not read-only is rejected"""
    _patch_connect(monkeypatch, FakeCursor(row=("app", "writer", "16.2", "off", False)))

    with pytest.raises(DatabaseConnectionError, match="not read-only"):
        check_postgres_health("postgresql://localhost/app")


def test_connection_failures_are_wrapped(monkeypatch):
    """Driver connection errors become DatabaseConnectionError"""

    def refusing_connect(dsn, **kwargs):
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(connection.psycopg, "connect", refusing_connect)

    with pytest.raises(DatabaseConnectionError, match="connection refused"):
        check_postgres_health("postgresql://localhost/app")


def test_query_rows_are_capped(monkeypatch):
    """Results beyond max_rows are dropped and flagged as truncated"""
    cursor = FakeCursor(
        description=[Column("id"), Column("name")],
        rows=[(1, "a"), (2, "b"), (3, "c")],
    )
    _patch_connect(monkeypatch, cursor)

    result = run_readonly_query("postgresql://localhost/app", "SELECT id, name FROM t", max_rows=2)

    assert result.columns == ["id", "name"]
    assert result.rows == [(1, "a"), (2, "b")]
    assert result.truncated
    assert result.row_count == 2
    assert cursor.executed == ["SELECT id, name FROM t"]


def test_query_failures_are_wrapped(monkeypatch):
    """Connection problems surface as QueryExecutionError"""

    def refusing_connect(dsn, **kwargs):
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(connection.psycopg, "connect", refusing_connect)

    with pytest.raises(QueryExecutionError, match="connection refused"):
        run_readonly_query("postgresql://localhost/app", "SELECT 1")

    with pytest.raises(QueryExecutionError, match="max_rows"):
        run_readonly_query("postgresql://localhost/app", "SELECT 1", max_rows=0)
