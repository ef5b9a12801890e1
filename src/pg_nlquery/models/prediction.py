"""Typed prediction payload returned by learned predictors."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PredictionResult(BaseModel):
    """SQL proposed by a predictor together with its self-reported confidence."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    sql: str = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)
    assumptions: list[str] = Field(default_factory=list)
    tables_used: list[str] = Field(default_factory=list)

    @field_validator("sql")
    @classmethod
    def strip_sql(cls, value: str) -> str:
        normalized = value.strip().rstrip(";").strip()
        if not normalized:
            raise ValueError("sql cannot be blank.")
        return normalized
