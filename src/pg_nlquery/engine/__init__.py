"""Rule-based natural-language to SQL engine."""

from pg_nlquery.engine.context import (
    ConversationHistory,
    ConversationTurn,
    build_conversation_context,
)
from pg_nlquery.engine.core import (
    GeneratedQuery,
    NoMatchError,
    QueryEngine,
    QueryEngineError,
    SchemaMissingError,
)
from pg_nlquery.engine.dispatcher import MATCHERS, dispatch, normalize_query

__all__ = [
    "ConversationHistory",
    "ConversationTurn",
    "GeneratedQuery",
    "MATCHERS",
    "NoMatchError",
    "QueryEngine",
    "QueryEngineError",
    "SchemaMissingError",
    "build_conversation_context",
    "dispatch",
    "normalize_query",
]
