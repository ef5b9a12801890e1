"""Cheap structural check applied to predictor output."""

from __future__ import annotations

VALID_STATEMENT_STARTS = (
    "select",
    "insert",
    "update",
    "delete",
    "with",
    "create",
    "alter",
    "drop",
)


def is_valid_sql_structure(sql: str) -> bool:
    """Known leading keyword, FROM for SELECT, and balanced parentheses."""
    normalized = sql.strip().lower()
    if not normalized:
        return False
    if not normalized.startswith(VALID_STATEMENT_STARTS):
        return False
    if normalized.startswith("select") and "from" not in normalized:
        return False
    return normalized.count("(") == normalized.count(")")
