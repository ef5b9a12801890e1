"""OpenAI-backed predictor for natural-language SQL generation."""

from __future__ import annotations

import http.client
import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib import error, request

from pydantic import ValidationError

from pg_nlquery.models.prediction import PredictionResult
from pg_nlquery.predictor.base import PredictorError, QueryPredictor
from pg_nlquery.prompts.prediction import PromptBuildError, build_prediction_prompt
from pg_nlquery.schema.model import SchemaModel

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass(frozen=True)
class OpenAIPredictor(QueryPredictor):
    """Ask a chat-completions model for SQL plus a confidence estimate."""

    api_key: str
    model: str
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: int = 30

    def is_ready(self) -> bool:
        return bool(self.api_key.strip()) and bool(self.model.strip())

    def predict(
        self,
        query: str,
        *,
        context: str = "",
        schema: SchemaModel | None = None,
    ) -> PredictionResult:
        if not self.is_ready():
            raise PredictorError("OpenAI predictor is not configured.")
        try:
            prompt = build_prediction_prompt(query, schema, context=context)
        except PromptBuildError as exc:
            raise PredictorError(str(exc)) from exc

        body = {
            "model": self.model,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": prompt.system_prompt},
                {"role": "user", "content": prompt.user_prompt},
            ],
        }
        payload = self._post("/chat/completions", body)
        content = self._message_content(payload)

        try:
            response_obj = json.loads(content)
        except json.JSONDecodeError as exc:
            raise PredictorError("Predictor content was not valid JSON.") from exc

        try:
            result = PredictionResult.model_validate(response_obj)
        except ValidationError as exc:
            raise PredictorError(f"Predictor output violated contract: {exc}") from exc

        logger.debug(
            "Prediction from %s: confidence=%.2f tables=%s",
            self.model,
            result.confidence,
            result.tables_used,
        )
        return result

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        req = request.Request(
            self.base_url.rstrip("/") + path,
            method="POST",
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        try:
            with request.urlopen(req, timeout=self.timeout_seconds) as response:
                return json.loads(response.read().decode("utf-8"))
        except error.HTTPError as exc:
            details = exc.read().decode("utf-8", errors="replace")
            raise PredictorError(
                f"Prediction request failed with HTTP {exc.code}: {details}"
            ) from exc
        except error.URLError as exc:
            raise PredictorError(f"Prediction request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise PredictorError("Prediction request timed out.") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise PredictorError(f"Prediction request failed: {exc}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PredictorError("Prediction response was not valid JSON.") from exc

    @staticmethod
    def _message_content(payload: Any) -> str:
        if not isinstance(payload, dict):
            raise PredictorError("Prediction response was not a JSON object.")
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise PredictorError("Prediction response has no choices.")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise PredictorError("Prediction response content is empty.")
        return content
