"""SQL parsing helpers backed by SQLGlot."""

from __future__ import annotations

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError


class SQLParseError(RuntimeError):
    """Raised when SQL cannot be parsed safely."""


def parse_postgres_sql(sql: str) -> exp.Expression:
    """Parse exactly one statement using PostgreSQL dialect semantics."""
    normalized = sql.strip().rstrip(";").strip()
    if not normalized:
        raise SQLParseError("SQL cannot be empty.")

    try:
        statements = [item for item in sqlglot.parse(normalized, read="postgres") if item]
    except ParseError as exc:
        raise SQLParseError(f"Invalid SQL: {exc}") from exc

    if len(statements) != 1:
        raise SQLParseError(f"Expected one SQL statement, found {len(statements)}.")
    return statements[0]


def format_sql(sql: str) -> str:
    """Pretty-print a statement; unparseable input is returned unchanged."""
    try:
        return parse_postgres_sql(sql).sql(dialect="postgres", pretty=True)
    except SQLParseError:
        return sql
