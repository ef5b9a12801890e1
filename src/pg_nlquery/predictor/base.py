"""Provider-independent interface for learned SQL predictors."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pg_nlquery.models.prediction import PredictionResult
from pg_nlquery.schema.model import SchemaModel


class PredictorError(RuntimeError):
    """Raised when a predictor fails or returns invalid output."""


class QueryPredictor(ABC):
    """Optional collaborator consulted before the rule-based matchers."""

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the predictor can serve predictions right now."""

    @abstractmethod
    def predict(
        self,
        query: str,
        *,
        context: str = "",
        schema: SchemaModel | None = None,
    ) -> PredictionResult:
        """Propose SQL for ``query`` with a confidence in [0, 1]."""
