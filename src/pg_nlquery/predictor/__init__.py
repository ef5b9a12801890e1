"""Optional learned predictors and factory helpers."""

from pg_nlquery.config import Settings
from pg_nlquery.predictor.base import PredictorError, QueryPredictor
from pg_nlquery.predictor.openai_adapter import OpenAIPredictor
from pg_nlquery.predictor.sanity import is_valid_sql_structure


def create_predictor(settings: Settings) -> QueryPredictor | None:
    """Create the configured predictor, or None when it cannot run."""
    if not settings.predictor_enabled or not settings.openai_api_key:
        return None
    return OpenAIPredictor(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
    )


__all__ = [
    "OpenAIPredictor",
    "PredictorError",
    "QueryPredictor",
    "create_predictor",
    "is_valid_sql_structure",
]
