"""Structural query matchers: counts, listings, table info and plain selects.

Each matcher takes the normalized (trimmed, lowercased) query and the schema
snapshot, and returns SQL or ``None`` to let the next matcher try.
"""

from __future__ import annotations

import re

from pg_nlquery.matching.resolver import find_table
from pg_nlquery.schema.model import SchemaModel
from pg_nlquery.sql import builder

_NUMBER = re.compile(r"^[0-9]+$")

COUNT_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"how many (?:rows|records|entries) (?:are )?in (?:the )?(?:table )?(\w+)",
        r"count (?:of |all )?(?:rows |records )?(?:in )?(?:the )?(\w+)",
        r"(\w+) (?:row |record )?count",
        r"how many (\w+)",
    )
)

SHOW_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"\bshow (?:me )?(?:the )?(?:first )?([0-9]+)? ?(?:rows |records )?(?:from |of )?(?:the )?(\w+)",
        r"\blist (?:the )?(?:first )?([0-9]+)? ?(\w+)",
        r"\bget (?:the )?(?:first )?([0-9]+)? ?(\w+)",
        r"\bdisplay (?:the )?(?:first )?([0-9]+)? ?(\w+)",
    )
)

COLUMN_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"what (?:are )?(?:the )?columns (?:in |of )?(?:the )?(\w+)",
        r"describe (?:the )?(\w+)",
        r"schema (?:of |for )?(?:the )?(\w+)",
        r"(\w+) structure",
    )
)

SELECT_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"\bselect (?:all )?(?:from )?(\w+)",
        r"\bfetch (?:all )?(?:from )?(\w+)",
        r"\bretrieve (?:all )?(?:from )?(\w+)",
    )
)


def _is_number(value: str | None) -> bool:
    return bool(value) and bool(_NUMBER.match(value))


def match_count(query: str, schema: SchemaModel) -> str | None:
    if "each table" in query or "all tables" in query:
        sql = builder.row_counts_per_table(schema.tables)
        if sql:
            return sql

    for pattern in COUNT_PATTERNS:
        found = pattern.search(query)
        if not found:
            continue
        table = find_table(schema, found.group(1))
        if table is not None:
            return builder.count_rows(table)
    return None


def _limit_and_table(groups: tuple[str | None, ...]) -> tuple[str, str]:
    # TODO: a query with a number after the table name ("list users 5") still
    # takes the first numeric capture only; needs a dedicated trailing-limit
    # pattern.
    limit = str(builder.DEFAULT_LIMIT)
    table_name = ""
    for index, value in enumerate(groups):
        if not value:
            continue
        if _is_number(value):
            limit = value
        elif index > 0 or not _is_number(groups[0]):
            table_name = value
    return limit, table_name


def match_show(query: str, schema: SchemaModel) -> str | None:
    for pattern in SHOW_PATTERNS:
        found = pattern.search(query)
        if not found:
            continue
        limit, table_name = _limit_and_table(found.groups())
        if not table_name:
            continue
        table = find_table(schema, table_name)
        if table is not None:
            return builder.select_all(table, limit)
    return None


def match_table_info(query: str, schema: SchemaModel) -> str | None:
    if "tables" in query and any(word in query for word in ("list", "show", "what")):
        return builder.list_tables_with_column_counts()

    for pattern in COLUMN_PATTERNS:
        found = pattern.search(query)
        if not found:
            continue
        table = find_table(schema, found.group(1))
        if table is not None:
            return builder.describe_columns(table)

    if "largest" in query and "table" in query:
        return builder.row_counts_per_table(
            schema.tables, limit=builder.LARGEST_TABLES_LIMIT
        )
    return None


def match_select(query: str, schema: SchemaModel) -> str | None:
    for pattern in SELECT_PATTERNS:
        found = pattern.search(query)
        if not found:
            continue
        table = find_table(schema, found.group(1))
        if table is not None:
            return builder.select_all(table)
    return None


def match_literal_table(query: str, schema: SchemaModel) -> str | None:
    """Last resort: any table whose name appears verbatim in the query."""
    for table in schema.tables:
        if table.name.lower() in query:
            return builder.select_all(table)
    return None
