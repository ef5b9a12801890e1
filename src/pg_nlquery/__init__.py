"""Translate natural-language questions into PostgreSQL queries."""

from pg_nlquery.engine import (
    ConversationHistory,
    ConversationTurn,
    GeneratedQuery,
    NoMatchError,
    QueryEngine,
    QueryEngineError,
    SchemaMissingError,
)
from pg_nlquery.schema.model import ColumnInfo, SchemaModel, TableInfo

__version__ = "0.1.0"

__all__ = [
    "ColumnInfo",
    "ConversationHistory",
    "ConversationTurn",
    "GeneratedQuery",
    "NoMatchError",
    "QueryEngine",
    "QueryEngineError",
    "SchemaMissingError",
    "SchemaModel",
    "TableInfo",
    "__version__",
]
