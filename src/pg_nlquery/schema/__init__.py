"""Schema model and its text rendering.

The JSON cache lives in :mod:`pg_nlquery.schema.cache` and is imported
explicitly since it depends on the database layer.
"""

from pg_nlquery.schema.description import describe_schema
from pg_nlquery.schema.model import (
    LINE_TYPES,
    POLYGON_TYPES,
    ColumnInfo,
    FunctionInfo,
    SchemaModel,
    TableInfo,
    ViewInfo,
)

__all__ = [
    "ColumnInfo",
    "FunctionInfo",
    "LINE_TYPES",
    "POLYGON_TYPES",
    "SchemaModel",
    "TableInfo",
    "ViewInfo",
    "describe_schema",
]
