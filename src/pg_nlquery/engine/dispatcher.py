"""Ordered cascade of rule-based matchers."""

from __future__ import annotations

import logging
from typing import Callable

from pg_nlquery.engine.patterns import (
    match_count,
    match_literal_table,
    match_select,
    match_show,
    match_table_info,
)
from pg_nlquery.engine.search import match_keyword_search
from pg_nlquery.engine.spatial import match_spatial
from pg_nlquery.schema.model import SchemaModel

Matcher = Callable[[str, SchemaModel], "str | None"]

MATCHERS: tuple[tuple[str, Matcher], ...] = (
    ("count", match_count),
    ("show", match_show),
    ("table_info", match_table_info),
    ("spatial", match_spatial),
    ("select", match_select),
    ("keyword_search", match_keyword_search),
    ("literal", match_literal_table),
)

logger = logging.getLogger(__name__)


def normalize_query(query: str) -> str:
    """Lowercase and collapse runs of whitespace to single spaces."""
    return " ".join(query.split()).lower()


def dispatch(query: str, schema: SchemaModel) -> tuple[str, str] | None:
    """Return ``(matcher_name, sql)`` from the first matcher that answers."""
    normalized = normalize_query(query)
    for name, matcher in MATCHERS:
        sql = matcher(normalized, schema)
        if sql:
            logger.debug("Matcher %s answered %r", name, normalized)
            return name, sql
    return None
