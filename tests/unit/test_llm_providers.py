import io
import json
import socket
from urllib import error

import pytest

from agent.llm_providers import (
    FailureKind,
    GeminiProvider,
    LLMProvider,
    OllamaProvider,
    OpenAIProvider,
    build_provider,
)
from utils.config import Settings


class FakeResponse:
    def __init__(self, body):
        self.body = body if isinstance(body, str) else json.dumps(body)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def read(self):
        return self.body.encode("utf-8")


def _patch_urlopen(monkeypatch, outcome, captured=None):
    def fake_urlopen(req, timeout=None):
        if captured is not None:
            captured["url"] = req.full_url
            captured["headers"] = dict(req.header_items())
            captured["payload"] = json.loads(req.data.decode("utf-8"))
            captured["timeout"] = timeout
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)

    monkeypatch.setattr("agent.llm_providers.request.urlopen", fake_urlopen)


def _openai_settings(**overrides):
    values = {"llm_provider": "openai", "openai_api_key": "sk-test", "llm_timeout_sec": 7.0}
    values.update(overrides)
    return Settings(**values)


def test_build_provider_follows_configuration():
    assert isinstance(build_provider(Settings(llm_provider="openai")), OpenAIProvider)
    assert isinstance(build_provider(Settings(llm_provider="gemini")), GeminiProvider)
    assert isinstance(build_provider(Settings(llm_provider="ollama")), OllamaProvider)
    assert build_provider(Settings(llm_provider="heuristic")) is None


def test_unknown_provider_falls_back_to_heuristic():
    assert LLMProvider.parse("claude-local") is LLMProvider.HEURISTIC
    assert build_provider(Settings(llm_provider="claude-local")) is None


def test_missing_key_is_unconfigured_without_network(monkeypatch):
    _patch_urlopen(monkeypatch, AssertionError("network must not be touched"))
    result = OpenAIProvider(Settings(llm_provider="openai")).complete("sys", "user")
    assert result.ok is False
    assert result.failure.kind is FailureKind.UNCONFIGURED
    assert "OPENAI_API_KEY" in result.failure.message


def test_openai_request_shape_and_text(monkeypatch):
    captured = {}
    _patch_urlopen(monkeypatch, {"choices": [{"message": {"content": "SELECT 1;"}}]}, captured)
    result = OpenAIProvider(_openai_settings()).complete("system text", "user text")
    assert result.ok is True
    assert result.text == "SELECT 1;"
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer sk-test"
    assert captured["payload"]["messages"][0] == {"role": "system", "content": "system text"}
    assert captured["payload"]["model"] == "gpt-3.5-turbo"
    assert captured["timeout"] == 7.0


def test_gemini_joins_prompts_and_parts(monkeypatch):
    captured = {}
    body = {"candidates": [{"content": {"parts": [{"text": "SELECT "}, {"text": "2;"}]}}]}
    _patch_urlopen(monkeypatch, body, captured)
    result = GeminiProvider(Settings(llm_provider="gemini", gemini_api_key="g-key")).complete("sys", "usr")
    assert result.text == "SELECT 2;"
    assert captured["url"].endswith("/models/gemini-1.5-flash:generateContent")
    assert captured["payload"]["contents"][0]["parts"][0]["text"] == "sys\n\nusr"


def test_ollama_requires_model_and_base_url():
    result = OllamaProvider(Settings(llm_provider="ollama", ollama_model="sqlcoder")).complete("s", "u")
    assert result.failure.kind is FailureKind.UNCONFIGURED
    assert "OLLAMA_BASE_URL" in result.failure.message


@pytest.mark.parametrize(
    "outcome, kind",
    [
        (error.HTTPError("u", 401, "Unauthorized", {}, io.BytesIO(b"")), FailureKind.AUTH),
        (error.HTTPError("u", 503, "Unavailable", {}, io.BytesIO(b"")), FailureKind.TRANSPORT),
        (error.HTTPError("u", 400, "Bad Request", {}, io.BytesIO(b"")), FailureKind.PROVIDER_ERROR),
        (socket.timeout("timed out"), FailureKind.TIMEOUT),
        (error.URLError(socket.timeout("timed out")), FailureKind.TIMEOUT),
        (error.URLError("connection refused"), FailureKind.TRANSPORT),
        ("<html>oops</html>", FailureKind.MALFORMED_RESPONSE),
        ({"choices": []}, FailureKind.MALFORMED_RESPONSE),
        ({"choices": [{"message": {"content": "   "}}]}, FailureKind.EMPTY_RESPONSE),
    ],
)
def test_failures_are_classified(monkeypatch, outcome, kind):
    _patch_urlopen(monkeypatch, outcome)
    result = OpenAIProvider(_openai_settings()).complete("s", "u")
    assert result.ok is False
    assert result.failure.kind is kind
    assert result.failure.provider == "OpenAI"
