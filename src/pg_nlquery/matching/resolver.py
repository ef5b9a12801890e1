"""Resolve query words to tables of the schema model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from pg_nlquery.matching.semantic import MatchKind, score_match
from pg_nlquery.schema.model import SchemaModel, TableInfo

MIN_MATCH_SCORE = 0.35
COMMENT_WEIGHT = 0.90
COLUMN_WEIGHT = 0.85


class MatchSource(str, Enum):
    TABLE = "table"
    COMMENT = "comment"
    COLUMN = "column"


@dataclass(frozen=True)
class MatchCandidate:
    """Best keyword match found for one table."""

    keyword: str
    entity_name: str
    score: float
    match_kind: MatchKind
    matched_on: str
    source: MatchSource
    table: TableInfo

    @property
    def label(self) -> str:
        return f"{self.match_kind.value}_{self.source.value}"


def find_table(schema: SchemaModel, name: str) -> TableInfo | None:
    """Exact, then containment, then singular/plural lookup of a table name."""
    needle = name.strip().lower()
    if not needle:
        return None

    for table in schema.tables:
        if table.name.lower() == needle:
            return table

    for table in schema.tables:
        if needle in table.name.lower():
            return table

    singular = needle.removesuffix("s")
    for table in schema.tables:
        table_lower = table.name.lower()
        if table_lower == singular or table_lower.removesuffix("s") == singular:
            return table

    return None


def _best_for_table(table: TableInfo, keywords: Iterable[str]) -> MatchCandidate | None:
    best: MatchCandidate | None = None

    def consider(
        keyword: str,
        target: str,
        weight: float,
        source: MatchSource,
        matched_on: str,
    ) -> None:
        nonlocal best
        result = score_match(keyword, target)
        if result.kind is None:
            return
        weighted = result.score * weight
        if weighted < MIN_MATCH_SCORE:
            return
        if best is None or weighted > best.score:
            best = MatchCandidate(
                keyword=result.keyword,
                entity_name=target,
                score=weighted,
                match_kind=result.kind,
                matched_on=matched_on,
                source=source,
                table=table,
            )

    comment_words = table.comment.lower().split() if table.comment else []
    for keyword in keywords:
        consider(keyword, table.name, 1.0, MatchSource.TABLE, table.name)
        for word in comment_words:
            consider(keyword, word, COMMENT_WEIGHT, MatchSource.COMMENT, table.comment)
        for column in table.columns:
            consider(keyword, column.name, COLUMN_WEIGHT, MatchSource.COLUMN, column.name)

    return best


def find_semantic_matches(
    schema: SchemaModel,
    keywords: Iterable[str],
) -> list[MatchCandidate]:
    """Rank tables by their best name, comment or column match."""
    keyword_list = [keyword for keyword in keywords if keyword.strip()]
    if not keyword_list:
        return []

    matches = [
        candidate
        for candidate in (_best_for_table(table, keyword_list) for table in schema.tables)
        if candidate is not None
    ]
    # sorted() is stable, so equal scores keep schema table order.
    return sorted(matches, key=lambda item: -item.score)
