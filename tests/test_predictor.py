import io
import json
from urllib import error

import pytest

from pg_nlquery.config import Settings
from pg_nlquery.predictor import (
    OpenAIPredictor,
    PredictorError,
    create_predictor,
    is_valid_sql_structure,
)
from pg_nlquery.predictor import openai_adapter
from pg_nlquery.prompts.prediction import PromptBuildError, build_prediction_prompt


class FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _completion(content):
    body = {"choices": [{"message": {"content": content}}]}
    return FakeResponse(json.dumps(body).encode("utf-8"))


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("SELECT id FROM users", True),
        ("  with t as (select 1 from x) select * from t", True),
        ("INSERT INTO users VALUES (1)", True),
        ("SELECT 1", False),
        ("SELECT count(* FROM users", False),
        ("EXPLAIN SELECT * FROM users", False),
        ("", False),
    ],
)
def test_structure_check(sql, expected):
    """Leading keyword, FROM for SELECT and balanced parentheses"""
    assert is_valid_sql_structure(sql) is expected


def test_prompt_includes_schema_and_context(shop_schema):
    """Prompts carry the schema description and prior turns"""
    bundle = build_prediction_prompt(
        "how many orders",
        shop_schema,
        context="Previous conversation:\nUser: list users\n\n",
    )

    assert "public.orders" in bundle.user_prompt
    assert "User: list users" in bundle.user_prompt
    assert "Question:\nhow many orders" in bundle.user_prompt
    assert '"confidence"' in bundle.output_contract_json

    with pytest.raises(PromptBuildError):
        build_prediction_prompt("   ", shop_schema)


def test_predict_parses_chat_completion(monkeypatch, shop_schema):
    """JSON content is validated into a prediction"""
    captured = {}

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["body"] = json.loads(req.data.decode("utf-8"))
        return _completion(
            json.dumps({"sql": "SELECT COUNT(*) FROM public.orders;", "confidence": 0.82})
        )

    monkeypatch.setattr(openai_adapter.request, "urlopen", fake_urlopen)
    predictor = OpenAIPredictor(api_key="sk-test", model="test-model", base_url="http://llm/v1/")

    result = predictor.predict("how many orders", schema=shop_schema)

    assert result.sql == "SELECT COUNT(*) FROM public.orders"
    assert result.confidence == 0.82
    assert captured["url"] == "http://llm/v1/chat/completions"
    assert captured["body"]["model"] == "test-model"
    assert captured["body"]["response_format"] == {"type": "json_object"}


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps({"sql": "SELECT 1 FROM x"}),
        json.dumps({"sql": "SELECT 1 FROM x", "confidence": 1.4}),
        json.dumps({"sql": "SELECT 1 FROM x", "confidence": 0.9, "extra": True}),
    ],
)
def test_predict_rejects_contract_violations(monkeypatch, shop_schema, content):
    """Malformed model output is a PredictorError"""
    monkeypatch.setattr(
        openai_adapter.request, "urlopen", lambda req, timeout: _completion(content)
    )
    predictor = OpenAIPredictor(api_key="sk-test", model="test-model")

    with pytest.raises(PredictorError):
        predictor.predict("how many orders", schema=shop_schema)


def test_http_errors_are_wrapped(monkeypatch, shop_schema):
    """Transport failures surface as PredictorError"""

    def failing_urlopen(req, timeout):
        raise error.URLError("connection refused")

    monkeypatch.setattr(openai_adapter.request, "urlopen", failing_urlopen)
    predictor = OpenAIPredictor(api_key="sk-test", model="test-model")

    with pytest.raises(PredictorError, match="connection refused"):
        predictor.predict("how many orders", schema=shop_schema)


@pytest.mark.parametrize("body", [b"[]", b'"text"', b"\xff\xfe"])
def test_unusable_response_bodies(monkeypatch, shop_schema, body):
    """Bodies that are not a UTF-8 JSON object are a PredictorError"""
    monkeypatch.setattr(
        openai_adapter.request, "urlopen", lambda req, timeout: FakeResponse(body)
    )
    predictor = OpenAIPredictor(api_key="sk-test", model="test-model")

    with pytest.raises(PredictorError):
        predictor.predict("how many orders", schema=shop_schema)


def test_dropped_connections_are_wrapped(monkeypatch, shop_schema):
    """Socket errors outside URLError still surface as PredictorError"""

    def resetting_urlopen(req, timeout):
        raise ConnectionResetError("connection reset by peer")

    monkeypatch.setattr(openai_adapter.request, "urlopen", resetting_urlopen)
    predictor = OpenAIPredictor(api_key="sk-test", model="test-model")

    with pytest.raises(PredictorError, match="connection reset"):
        predictor.predict("how many orders", schema=shop_schema)


def test_unconfigured_predictor():
    """Without an API key the predictor is not ready and refuses to run"""
    predictor = OpenAIPredictor(api_key="", model="test-model")

    assert not predictor.is_ready()
    with pytest.raises(PredictorError):
        predictor.predict("how many orders")


def test_create_predictor_follows_settings():
    """The factory returns a predictor only when enabled and keyed"""
    assert create_predictor(Settings()) is None
    assert create_predictor(Settings(openai_api_key="sk", predictor_enabled=False)) is None

    predictor = create_predictor(Settings(openai_api_key="sk", openai_model="m"))

    assert isinstance(predictor, OpenAIPredictor)
    assert predictor.is_ready()
