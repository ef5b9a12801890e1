"""Prompt builders for pg-nlquery."""

from pg_nlquery.prompts.prediction import (
    PromptBuildError,
    PromptBundle,
    build_prediction_prompt,
)

__all__ = [
    "PromptBuildError",
    "PromptBundle",
    "build_prediction_prompt",
]
