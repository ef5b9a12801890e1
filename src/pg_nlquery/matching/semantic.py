"""Fuzzy similarity scoring between query keywords and schema entity names.

Every strategy is a plain function returning a score (0.0 when it does not
apply); ``score_match`` evaluates all of them and keeps the best one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from rapidfuzz.distance import Levenshtein

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

STEM_SUFFIXES = (
    "ology",
    "ation",
    "ment",
    "ness",
    "ity",
    "ing",
    "ed",
    "er",
    "est",
    "ly",
    "al",
    "ous",
    "ive",
    "able",
    "ible",
    "ful",
    "less",
    "ship",
    "ward",
    "wise",
)

MIN_STEM_LENGTH = 3
NGRAM_SIZE = 3
NGRAM_MIN_SIMILARITY = 0.30
FUZZY_MAX_DISTANCE = 2
FUZZY_MAX_LENGTH_DIFF = 3
FUZZY_MIN_KEYWORD_LENGTH = 4


class MatchKind(str, Enum):
    EXACT = "exact"
    EXACT_WORD = "exact_word"
    CONTAINS = "contains"
    CONTAINS_REVERSE = "contains_reverse"
    PREFIX = "prefix"
    STEM = "stem"
    STEM_PARTIAL = "stem_partial"
    NGRAM = "ngram"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class MatchScore:
    keyword: str
    entity_name: str
    score: float = 0.0
    kind: MatchKind | None = None


def stem_word(word: str) -> str:
    """Strip a plural ending, then at most one common derivational suffix."""
    word = word.lower()

    if word.endswith("ies") and len(word) > 4:
        word = word[:-3] + "y"
    elif word.endswith("es") and len(word) > 3:
        word = word[:-2]
    elif word.endswith("s") and len(word) > 2 and not word.endswith("ss"):
        word = word[:-1]

    for suffix in STEM_SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= MIN_STEM_LENGTH:
            return word[: -len(suffix)]
    return word


def split_entity_name(name: str) -> list[str]:
    """Split snake_case, kebab-case and camelCase names into lowercase words."""
    spaced = name.replace("_", " ").replace("-", " ")
    words: list[str] = []
    for chunk in spaced.split():
        words.extend(part.lower() for part in _CAMEL_BOUNDARY.split(chunk) if part)
    return words


def ngrams(value: str, size: int = NGRAM_SIZE) -> set[str]:
    value = value.lower()
    if len(value) < size:
        return {value}
    return {value[index : index + size] for index in range(len(value) - size + 1)}


def ngram_similarity(left: str, right: str, size: int = NGRAM_SIZE) -> float:
    """Jaccard similarity of the two strings' character n-gram sets."""
    left_grams = ngrams(left, size)
    right_grams = ngrams(right, size)
    union = len(left_grams | right_grams)
    if union == 0:
        return 0.0
    return len(left_grams & right_grams) / union


def _exact(keyword: str, entity: str, words: list[str]) -> float:
    return 1.0 if keyword == entity else 0.0


def _exact_word(keyword: str, entity: str, words: list[str]) -> float:
    return 0.95 if keyword in words else 0.0


def _contains(keyword: str, entity: str, words: list[str]) -> float:
    if keyword not in entity:
        return 0.0
    return 0.85 * (len(keyword) / len(entity)) + 0.10


def _contains_reverse(keyword: str, entity: str, words: list[str]) -> float:
    if len(entity) < 3 or entity not in keyword:
        return 0.0
    return 0.80 * (len(entity) / len(keyword)) + 0.10


def _prefix(keyword: str, entity: str, words: list[str]) -> float:
    if not (entity.startswith(keyword) or keyword.startswith(entity)):
        return 0.0
    overlap = min(len(keyword), len(entity))
    return 0.75 * (overlap / (len(entity) + len(keyword) - overlap)) + 0.15


def _stem(keyword: str, entity: str, words: list[str]) -> float:
    keyword_stem = stem_word(keyword)
    if len(keyword_stem) < MIN_STEM_LENGTH:
        return 0.0
    if keyword_stem == stem_word(entity):
        return 0.85
    if any(keyword_stem == stem_word(word) for word in words):
        return 0.85
    return 0.0


def _stem_partial(keyword: str, entity: str, words: list[str]) -> float:
    keyword_stem = stem_word(keyword)
    if not keyword_stem:
        return 0.0
    best = 0.0
    for word in words:
        word_stem = stem_word(word)
        if not (word_stem.startswith(keyword_stem) or keyword_stem.startswith(word_stem)):
            continue
        overlap = min(len(keyword_stem), len(word_stem))
        if overlap >= MIN_STEM_LENGTH:
            best = max(best, 0.70 * (overlap / len(keyword_stem)))
    return best


def _ngram(keyword: str, entity: str, words: list[str]) -> float:
    similarity = ngram_similarity(keyword, entity)
    if similarity <= NGRAM_MIN_SIMILARITY:
        return 0.0
    return similarity * 0.80


def _fuzzy(keyword: str, entity: str, words: list[str]) -> float:
    if abs(len(keyword) - len(entity)) > FUZZY_MAX_LENGTH_DIFF:
        return 0.0
    if len(keyword) < FUZZY_MIN_KEYWORD_LENGTH:
        return 0.0
    distance = Levenshtein.distance(keyword, entity)
    if distance > FUZZY_MAX_DISTANCE:
        return 0.0
    return (1.0 - distance / max(len(keyword), len(entity))) * 0.70


STRATEGIES: tuple[tuple[MatchKind, Callable[[str, str, list[str]], float]], ...] = (
    (MatchKind.EXACT, _exact),
    (MatchKind.EXACT_WORD, _exact_word),
    (MatchKind.CONTAINS, _contains),
    (MatchKind.CONTAINS_REVERSE, _contains_reverse),
    (MatchKind.PREFIX, _prefix),
    (MatchKind.STEM, _stem),
    (MatchKind.STEM_PARTIAL, _stem_partial),
    (MatchKind.NGRAM, _ngram),
    (MatchKind.FUZZY, _fuzzy),
)


def score_match(keyword: str, entity_name: str) -> MatchScore:
    """Score how well ``keyword`` names ``entity_name``; result is in [0, 1]."""
    keyword_lower = keyword.strip().lower()
    entity_lower = entity_name.strip().lower()
    if not keyword_lower or not entity_lower:
        return MatchScore(keyword=keyword_lower, entity_name=entity_name)

    words = split_entity_name(entity_name.strip())
    best = MatchScore(keyword=keyword_lower, entity_name=entity_name)
    for kind, strategy in STRATEGIES:
        score = strategy(keyword_lower, entity_lower, words)
        if score > best.score:
            best = MatchScore(
                keyword=keyword_lower,
                entity_name=entity_name,
                score=min(score, 1.0),
                kind=kind,
            )
        if best.score >= 1.0:
            break
    return best
