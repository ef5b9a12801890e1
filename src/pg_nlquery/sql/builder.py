"""SQL templates emitted by the query engine.

Identifiers and literals come from the harvested schema model, never straight
from user text; numeric values are checked before they are interpolated.
"""

from __future__ import annotations

import re
from typing import Sequence

from pg_nlquery.schema.model import TableInfo

DEFAULT_LIMIT = 50
UNION_ROW_CAP = 100
MIN_ROWS_PER_TABLE = 10
LARGEST_TABLES_LIMIT = 10

KM_TO_METERS = "1000"
MI_TO_METERS = "1609.34"

_INTEGER = re.compile(r"^[0-9]+$")
_DECIMAL = re.compile(r"^[0-9]+(?:\.[0-9]+)?$")

_CATALOG_FILTER = "table_schema NOT IN ('pg_catalog', 'information_schema')"


class SQLBuildError(ValueError):
    """Raised when a value cannot be placed into a SQL template safely."""


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def qualified_name(table: TableInfo) -> str:
    return f"{quote_ident(table.schema)}.{quote_ident(table.name)}"


def validate_number(value: str | int, *, allow_decimal: bool = False) -> str:
    """Return ``value`` as text if it is a plain non-negative number."""
    text = str(value).strip()
    pattern = _DECIMAL if allow_decimal else _INTEGER
    if not pattern.match(text):
        raise SQLBuildError(f"Expected a numeric literal, got {value!r}.")
    return text


def distance_in_meters(value: str, unit: str) -> str:
    """Express a distance as a metres expression for ST_DWithin."""
    distance = validate_number(value, allow_decimal=True)
    if unit == "km":
        return f"{distance} * {KM_TO_METERS}"
    if unit == "mi":
        return f"{distance} * {MI_TO_METERS}"
    if unit == "m":
        return distance
    raise SQLBuildError(f"Unsupported distance unit: {unit!r}.")


def select_all(table: TableInfo, limit: str | int = DEFAULT_LIMIT) -> str:
    return f"SELECT * FROM {qualified_name(table)} LIMIT {validate_number(limit)}"


def count_rows(table: TableInfo) -> str:
    return f"SELECT COUNT(*) AS count FROM {qualified_name(table)}"


def row_counts_per_table(
    tables: Sequence[TableInfo],
    *,
    limit: int | None = None,
) -> str | None:
    if not tables:
        return None
    parts = [
        f"SELECT {quote_literal(table.fqn)} AS table_name, COUNT(*) AS row_count "
        f"FROM {qualified_name(table)}"
        for table in tables
    ]
    sql = " UNION ALL ".join(parts) + " ORDER BY row_count DESC"
    if limit is not None:
        sql += f" LIMIT {validate_number(limit)}"
    return sql


def describe_columns(table: TableInfo) -> str:
    return (
        "SELECT column_name, data_type, is_nullable, column_default "
        "FROM information_schema.columns "
        f"WHERE table_schema = {quote_literal(table.schema)} "
        f"AND table_name = {quote_literal(table.name)} "
        "ORDER BY ordinal_position"
    )


def list_tables_with_column_counts() -> str:
    return (
        "SELECT table_schema, table_name, "
        "(SELECT COUNT(*) FROM information_schema.columns c "
        "WHERE c.table_schema = t.table_schema AND c.table_name = t.table_name) "
        "AS column_count "
        "FROM information_schema.tables t "
        f"WHERE table_type = 'BASE TABLE' AND {_CATALOG_FILTER} "
        "ORDER BY table_schema, table_name"
    )


def list_tables_with_columns() -> str:
    return (
        "SELECT table_schema, table_name, "
        "(SELECT string_agg(column_name, ', ') FROM information_schema.columns c "
        "WHERE c.table_schema = t.table_schema AND c.table_name = t.table_name) "
        "AS columns "
        "FROM information_schema.tables t "
        f"WHERE table_type = 'BASE TABLE' AND {_CATALOG_FILTER} "
        "ORDER BY table_schema, table_name"
    )


def within_distance(table: TableInfo, geometry_column: str, meters: str) -> str:
    return (
        f"SELECT * FROM {qualified_name(table)} "
        f"WHERE ST_DWithin({quote_ident(geometry_column)}::geography, "
        f"ST_MakePoint(0, 0)::geography, {meters}) "
        f"LIMIT {DEFAULT_LIMIT}"
    )


def largest_areas(table: TableInfo, geometry_column: str) -> str:
    area = f"ST_Area({quote_ident(geometry_column)}::geography)"
    return (
        f"SELECT *, {area} AS area_sqm FROM {qualified_name(table)} "
        f"ORDER BY {area} DESC LIMIT {DEFAULT_LIMIT}"
    )


def total_length(table: TableInfo, geometry_column: str) -> str:
    return (
        f"SELECT SUM(ST_Length({quote_ident(geometry_column)}::geography)) "
        f"AS total_length_meters FROM {qualified_name(table)}"
    )


def longest_features(table: TableInfo, geometry_column: str) -> str:
    length = f"ST_Length({quote_ident(geometry_column)}::geography)"
    return (
        f"SELECT *, {length} AS length_meters FROM {qualified_name(table)} "
        f"ORDER BY {length} DESC LIMIT {DEFAULT_LIMIT}"
    )


def union_common_columns(tables: Sequence[TableInfo], columns: Sequence[str]) -> str:
    """Stack the shared columns of several tables, tagged with their source."""
    column_list = ", ".join(quote_ident(column) for column in columns)
    parts = [
        f"SELECT {quote_literal(table.fqn)} AS _source_table, {column_list} "
        f"FROM {qualified_name(table)}"
        for table in tables
    ]
    return " UNION ALL ".join(parts) + f" LIMIT {UNION_ROW_CAP}"


def union_sampled_rows(tables: Sequence[TableInfo]) -> str:
    """Sample every table separately when they share no columns."""
    rows_per_table = max(MIN_ROWS_PER_TABLE, UNION_ROW_CAP // len(tables))
    parts = [
        f"(SELECT {quote_literal(table.fqn)} AS _source_table, * "
        f"FROM {qualified_name(table)} LIMIT {rows_per_table})"
        for table in tables
    ]
    return " UNION ALL ".join(parts)


def match_summary(rows: Sequence[tuple[TableInfo, float, str]]) -> str | None:
    """One row per candidate table with its match percentage and row count."""
    if not rows:
        return None
    parts = [
        f"SELECT {quote_literal(table.fqn)} AS table_name, "
        f"{quote_literal(f'{score * 100:.0f}%')} AS match_score, "
        f"{quote_literal(matched_on)} AS matched_on, "
        f"COUNT(*) AS row_count FROM {qualified_name(table)}"
        for table, score, matched_on in rows
    ]
    return " UNION ALL ".join(parts) + " ORDER BY row_count DESC"
