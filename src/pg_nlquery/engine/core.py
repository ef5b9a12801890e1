"""Query engine facade: predictor gate, rule cascade, and schema ownership."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable

from pg_nlquery.engine.dispatcher import dispatch
from pg_nlquery.matching.resolver import MatchCandidate, find_semantic_matches, find_table
from pg_nlquery.predictor.base import PredictorError, QueryPredictor
from pg_nlquery.predictor.sanity import is_valid_sql_structure
from pg_nlquery.schema.description import describe_schema
from pg_nlquery.schema.model import SchemaModel, TableInfo

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.6


class QueryEngineError(RuntimeError):
    """Base error for SQL generation failures."""


class SchemaMissingError(QueryEngineError):
    """Raised when SQL generation is requested before a schema is loaded."""

    def __init__(self) -> None:
        super().__init__("Schema not loaded. Harvest or load a schema cache first.")


class NoMatchError(QueryEngineError):
    """Raised when no matcher produced SQL for the query."""

    def __init__(self, query: str) -> None:
        super().__init__(f"Could not generate SQL for: {query}")
        self.query = query


@dataclass(frozen=True)
class GeneratedQuery:
    """Outcome of one generation call: SQL or a typed error, never both."""

    query: str
    sql: str | None = None
    error: QueryEngineError | None = None
    matcher: str | None = None

    @property
    def ok(self) -> bool:
        return self.sql is not None

    def to_dict(self) -> dict[str, object]:
        return {
            "query": self.query,
            "sql": self.sql,
            "error": str(self.error) if self.error else None,
            "matcher": self.matcher,
        }


class QueryEngine:
    """Translate natural-language questions into SQL against one schema."""

    def __init__(
        self,
        schema: SchemaModel | None = None,
        *,
        predictor: QueryPredictor | None = None,
        predictor_enabled: bool = True,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ) -> None:
        self._schema = schema
        self._lock = threading.Lock()
        self._predictor = predictor
        self._predictor_enabled = predictor_enabled
        self._min_confidence = min_confidence

    @property
    def schema(self) -> SchemaModel | None:
        with self._lock:
            return self._schema

    def set_schema(self, schema: SchemaModel | None) -> None:
        """Replace the schema wholesale; in-flight calls keep their snapshot."""
        with self._lock:
            self._schema = schema
        if schema is not None:
            logger.info(
                "Schema %s loaded with %d tables", schema.service_name, schema.table_count
            )

    def set_predictor_enabled(self, enabled: bool) -> None:
        self._predictor_enabled = enabled

    def predictor_status(self) -> str:
        if self._predictor is None:
            return "unavailable"
        if not self._predictor_enabled:
            return "disabled"
        return "ready" if self._predictor.is_ready() else "not ready"

    def describe_schema(self) -> str:
        return describe_schema(self.schema)

    def find_table(self, name: str) -> TableInfo | None:
        schema = self.schema
        if schema is None:
            return None
        return find_table(schema, name)

    def find_matches(self, keywords: Iterable[str]) -> list[MatchCandidate]:
        schema = self.schema
        if schema is None:
            return []
        return find_semantic_matches(schema, keywords)

    def generate(self, query: str, context: str = "") -> GeneratedQuery:
        """Generate SQL for ``query``; failures come back inside the result."""
        schema = self.schema
        if schema is None:
            return GeneratedQuery(query=query, error=SchemaMissingError())

        predicted = self._predict(query, context, schema)
        if predicted is not None:
            return GeneratedQuery(query=query, sql=predicted, matcher="predictor")

        answer = dispatch(query, schema)
        if answer is None:
            logger.debug("No matcher answered %r", query)
            return GeneratedQuery(query=query, error=NoMatchError(query))

        matcher, sql = answer
        return GeneratedQuery(query=query, sql=sql, matcher=matcher)

    def generate_sql(self, query: str, context: str = "") -> str:
        """Like :meth:`generate` but raises the typed error on failure."""
        result = self.generate(query, context)
        if result.error is not None:
            raise result.error
        assert result.sql is not None
        return result.sql

    def _predict(self, query: str, context: str, schema: SchemaModel) -> str | None:
        predictor = self._predictor
        if predictor is None or not self._predictor_enabled or not predictor.is_ready():
            return None

        try:
            prediction = predictor.predict(query, context=context, schema=schema)
        except PredictorError as exc:
            logger.debug("Predictor failed, using rules: %s", exc)
            return None

        if prediction.confidence <= self._min_confidence:
            logger.debug(
                "Prediction rejected: confidence %.2f <= %.2f",
                prediction.confidence,
                self._min_confidence,
            )
            return None
        if not is_valid_sql_structure(prediction.sql):
            logger.debug("Prediction rejected: invalid SQL structure")
            return None
        return prediction.sql
