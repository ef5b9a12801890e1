"""Keyword search fallback for questions no structural pattern understood."""

from __future__ import annotations

import logging
import re

from pg_nlquery.matching.resolver import MatchCandidate, find_semantic_matches
from pg_nlquery.schema.model import SchemaModel, TableInfo
from pg_nlquery.sql import builder

SEARCH_PATTERNS = tuple(
    re.compile(pattern)
    for pattern in (
        r"(?:do i have|is there|are there|find|search for|look for|any) (?:any )?"
        r"(.+?)(?:\s+(?:related\s+)?data|\s+tables?|\s+information)?$",
        r"(?:what|which) (?:tables?|data) (?:contain|have|include|relate to|about) (.+)",
        r"(.+?)(?:\s+related)?\s+(?:tables?|data)",
    )
)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "any", "some", "data", "table", "tables", "related",
        "information", "do", "i", "have", "is", "there", "are", "find", "search",
        "for", "look", "what", "which", "contain", "about", "include", "with",
        "my", "in", "to",
    }
)

SIMILARITY_WINDOW = 0.25
MAX_SIMILAR_TABLES = 5
CONFIDENT_SCORE = 0.6
MAX_SUMMARY_TABLES = 10

logger = logging.getLogger(__name__)


def _clean(word: str) -> str:
    return word.strip(".,?!").lower()


def extract_keywords(query: str) -> list[str]:
    """Pull candidate entity words out of a free-text question."""
    keywords: list[str] = []
    for pattern in SEARCH_PATTERNS:
        found = pattern.search(query)
        if not found:
            continue
        for word in found.group(1).split():
            word = _clean(word)
            if len(word) > 2 and word not in STOP_WORDS:
                keywords.append(word)
        break

    if not keywords:
        for word in query.split():
            word = _clean(word)
            if len(word) > 3 and word not in STOP_WORDS:
                keywords.append(word)
    return keywords


def common_columns(tables: list[TableInfo]) -> list[str]:
    """Column names present in every table, sorted."""
    if not tables:
        return []
    shared = {column.name for column in tables[0].columns}
    for table in tables[1:]:
        shared &= {column.name for column in table.columns}
    return sorted(shared)


def similar_matches(matches: list[MatchCandidate]) -> list[MatchCandidate]:
    top_score = matches[0].score
    cluster: list[MatchCandidate] = []
    for match in matches:
        if top_score - match.score <= SIMILARITY_WINDOW and len(cluster) < MAX_SIMILAR_TABLES:
            cluster.append(match)
    return cluster


def resolve_matches(matches: list[MatchCandidate]) -> str | None:
    """Turn a ranked match list into a single SQL statement."""
    if not matches:
        return builder.list_tables_with_columns()
    if len(matches) == 1:
        return builder.select_all(matches[0].table)

    cluster = similar_matches(matches)
    if len(cluster) > 1:
        tables = [match.table for match in cluster]
        shared = common_columns(tables)
        if shared:
            return builder.union_common_columns(tables, shared)
        return builder.union_sampled_rows(tables)

    if matches[0].score > CONFIDENT_SCORE:
        return builder.select_all(matches[0].table)

    return builder.match_summary(
        [
            (match.table, match.score, match.matched_on)
            for match in matches[:MAX_SUMMARY_TABLES]
        ]
    )


def match_keyword_search(query: str, schema: SchemaModel) -> str | None:
    keywords = extract_keywords(query)
    if not keywords:
        return None

    matches = find_semantic_matches(schema, keywords)
    if matches:
        logger.debug(
            "Keyword search %s: top match %s (%.2f, %s)",
            keywords,
            matches[0].table.fqn,
            matches[0].score,
            matches[0].label,
        )
    return resolve_matches(matches)
