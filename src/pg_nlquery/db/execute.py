"""Run generated SQL in a read-only session."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import psycopg

from pg_nlquery.db.connection import DatabaseConnectionError, connect_readonly

logger = logging.getLogger(__name__)


class QueryExecutionError(RuntimeError):
    """Raised when generated SQL fails to execute."""


@dataclass(frozen=True)
class QueryResult:
    columns: list[str] = field(default_factory=list)
    rows: list[tuple] = field(default_factory=list)
    truncated: bool = False

    @property
    def row_count(self) -> int:
        return len(self.rows)


def run_readonly_query(postgres_dsn: str, sql: str, *, max_rows: int = 50) -> QueryResult:
    """Execute one statement and fetch at most ``max_rows`` rows."""
    if max_rows < 1:
        raise QueryExecutionError("max_rows must be >= 1.")

    try:
        with connect_readonly(postgres_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(sql)
                if cur.description is None:
                    return QueryResult()
                columns = [item.name for item in cur.description]
                rows = cur.fetchmany(max_rows + 1)
    except DatabaseConnectionError as exc:
        raise QueryExecutionError(str(exc)) from exc
    except psycopg.Error as exc:
        raise QueryExecutionError(f"Query failed: {exc}") from exc

    truncated = len(rows) > max_rows
    logger.debug("Fetched %d rows (truncated=%s)", min(len(rows), max_rows), truncated)
    return QueryResult(columns=columns, rows=list(rows[:max_rows]), truncated=truncated)
