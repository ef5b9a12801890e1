"""PostGIS query templates: distance, area and length questions."""

from __future__ import annotations

import re

from pg_nlquery.schema.model import (
    LINE_TYPES,
    POLYGON_TYPES,
    ColumnInfo,
    SchemaModel,
    TableInfo,
)
from pg_nlquery.sql import builder

_UNIT = r"(?:km|kilometers?|kilometres?|m|meters?|metres?|mi|miles?)"
_KILOMETERS = re.compile(r"[0-9]\s*km\b|kilomet")
_MILES = re.compile(r"[0-9]\s*mi\b|\bmiles?\b")

DISTANCE_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        rf"within ([0-9]+(?:\.[0-9]+)?)\s*{_UNIT}",
        rf"([0-9]+(?:\.[0-9]+)?)\s*{_UNIT} (?:from|of|away)",
    )
)

AREA_KEYWORDS = ("area", "size")
LENGTH_KEYWORDS = ("length", "meters of road", "distance")
AGGREGATE_KEYWORDS = ("total", "sum")


def detect_distance_unit(query: str) -> str:
    """Scan the whole query for a unit word; metres when none is found."""
    if _KILOMETERS.search(query):
        return "km"
    if _MILES.search(query):
        return "mi"
    return "m"


def _first_column_of_type(
    tables: tuple[TableInfo, ...],
    geometry_types: tuple[str, ...],
) -> tuple[TableInfo, ColumnInfo] | None:
    for table in tables:
        for column in table.geometry_columns:
            if column.geometry_type.upper() in geometry_types:
                return table, column
    return None


def match_spatial(query: str, schema: SchemaModel) -> str | None:
    if not schema.has_spatial_extension:
        return None
    geometry_tables = schema.geometry_tables
    if not geometry_tables:
        return None

    for pattern in DISTANCE_PATTERNS:
        found = pattern.search(query)
        if not found:
            continue
        table = geometry_tables[0]
        column = table.geometry_columns[0]
        meters = builder.distance_in_meters(found.group(1), detect_distance_unit(query))
        return builder.within_distance(table, column.name, meters)

    if any(keyword in query for keyword in AREA_KEYWORDS):
        located = _first_column_of_type(geometry_tables, POLYGON_TYPES)
        if located:
            table, column = located
            return builder.largest_areas(table, column.name)

    if any(keyword in query for keyword in LENGTH_KEYWORDS):
        located = _first_column_of_type(geometry_tables, LINE_TYPES)
        if located:
            table, column = located
            if any(keyword in query for keyword in AGGREGATE_KEYWORDS):
                return builder.total_length(table, column.name)
            return builder.longest_features(table, column.name)

    return None
