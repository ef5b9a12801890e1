"""Typed payloads exchanged with learned predictors."""

from pg_nlquery.models.prediction import PredictionResult

__all__ = ["PredictionResult"]
