"""Table lookup and fuzzy keyword matching."""

from pg_nlquery.matching.resolver import (
    MIN_MATCH_SCORE,
    MatchCandidate,
    MatchSource,
    find_semantic_matches,
    find_table,
)
from pg_nlquery.matching.semantic import (
    MatchKind,
    MatchScore,
    ngram_similarity,
    score_match,
    split_entity_name,
    stem_word,
)

__all__ = [
    "MIN_MATCH_SCORE",
    "MatchCandidate",
    "MatchKind",
    "MatchScore",
    "MatchSource",
    "find_semantic_matches",
    "find_table",
    "ngram_similarity",
    "score_match",
    "split_entity_name",
    "stem_word",
]
