"""Generative SQL collaborators.

Every provider exposes ``complete(system_prompt, user_prompt)`` and returns a
``CompletionResult``; transport and payload problems come back as a
``GenerationFailure`` value instead of an exception so the orchestrator can
decide whether to retry or fall back to the heuristic generator.
"""

from __future__ import annotations

import json
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from urllib import error, request

import structlog

from utils.config import Settings

logger = structlog.get_logger(__name__)


class LLMProvider(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"
    OLLAMA = "ollama"
    HEURISTIC = "heuristic"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "LLMProvider":
        value = (raw or cls.OPENAI.value).strip().lower()
        try:
            return cls(value)
        except ValueError:
            logger.warning("unknown_llm_provider", provider=value, fallback=cls.HEURISTIC.value)
            return cls.HEURISTIC


class FailureKind(str, Enum):
    UNCONFIGURED = "unconfigured"
    AUTH = "auth"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    EMPTY_RESPONSE = "empty_response"
    MALFORMED_RESPONSE = "malformed_response"
    PROVIDER_ERROR = "provider_error"


@dataclass(frozen=True)
class GenerationFailure:
    kind: FailureKind
    message: str
    provider: str

    def describe(self) -> str:
        return f"{self.provider} {self.kind.value}: {self.message}"


@dataclass(frozen=True)
class CompletionResult:
    text: Optional[str] = None
    failure: Optional[GenerationFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and bool(self.text)


class CompletionProvider(ABC):
    provider: LLMProvider
    label: str

    def __init__(self, settings: Settings):
        self.settings = settings
        self.timeout_sec = settings.llm_timeout_sec

    @property
    @abstractmethod
    def model(self) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def configuration_error(self) -> Optional[str]:
        """Return why the provider cannot be called, or None when it can."""
        raise NotImplementedError

    @abstractmethod
    def _build_request(self, system_prompt: str, user_prompt: str) -> request.Request:
        raise NotImplementedError

    @abstractmethod
    def _extract_text(self, body: Dict[str, Any]) -> str:
        raise NotImplementedError

    def _fail(self, kind: FailureKind, message: str) -> CompletionResult:
        return CompletionResult(failure=GenerationFailure(kind=kind, message=message, provider=self.label))

    def _post_json(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> request.Request:
        return request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", **(headers or {})},
            method="POST",
        )

    def complete(self, system_prompt: str, user_prompt: str) -> CompletionResult:
        missing = self.configuration_error()
        if missing:
            return self._fail(FailureKind.UNCONFIGURED, missing)

        req = self._build_request(system_prompt, user_prompt)
        try:
            with request.urlopen(req, timeout=self.timeout_sec) as resp:
                raw = resp.read().decode("utf-8")
        except error.HTTPError as exc:
            if exc.code in {401, 403}:
                return self._fail(FailureKind.AUTH, f"HTTP {exc.code}: {exc.reason}")
            if exc.code == 429 or exc.code >= 500:
                return self._fail(FailureKind.TRANSPORT, f"HTTP {exc.code}: {exc.reason}")
            return self._fail(FailureKind.PROVIDER_ERROR, f"HTTP {exc.code}: {exc.reason}")
        except (socket.timeout, TimeoutError) as exc:
            return self._fail(FailureKind.TIMEOUT, f"request timed out after {self.timeout_sec}s ({exc})")
        except error.URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                return self._fail(FailureKind.TIMEOUT, f"request timed out after {self.timeout_sec}s")
            return self._fail(FailureKind.TRANSPORT, str(exc.reason))

        try:
            body = json.loads(raw)
        except json.JSONDecodeError as exc:
            return self._fail(FailureKind.MALFORMED_RESPONSE, f"response is not JSON: {exc}")

        try:
            text = self._extract_text(body)
        except (KeyError, IndexError, TypeError) as exc:
            return self._fail(FailureKind.MALFORMED_RESPONSE, f"unexpected response shape: {exc!r}")

        if not text or not text.strip():
            return self._fail(FailureKind.EMPTY_RESPONSE, "provider returned an empty completion")
        return CompletionResult(text=text)


class OpenAIProvider(CompletionProvider):
    provider = LLMProvider.OPENAI
    label = "OpenAI"

    @property
    def model(self) -> Optional[str]:
        return self.settings.openai_model

    def configuration_error(self) -> Optional[str]:
        if not self.settings.openai_api_key:
            return "OPENAI_API_KEY is not set"
        return None

    def _build_request(self, system_prompt: str, user_prompt: str) -> request.Request:
        return self._post_json(
            f"{self.settings.openai_base_url.rstrip('/')}/chat/completions",
            {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": 0.2,
                "max_tokens": 400,
            },
            headers={"Authorization": f"Bearer {self.settings.openai_api_key}"},
        )

    def _extract_text(self, body: Dict[str, Any]) -> str:
        return body["choices"][0]["message"]["content"] or ""


class GeminiProvider(CompletionProvider):
    provider = LLMProvider.GEMINI
    label = "Gemini"

    @property
    def model(self) -> Optional[str]:
        return self.settings.gemini_model

    def configuration_error(self) -> Optional[str]:
        if not self.settings.gemini_api_key:
            return "GEMINI_API_KEY is not set"
        return None

    def _build_request(self, system_prompt: str, user_prompt: str) -> request.Request:
        # Single-turn prompt: system instruction and user prompt travel together.
        return self._post_json(
            f"{self.settings.gemini_base_url.rstrip('/')}/models/{self.model}:generateContent",
            {
                "contents": [{"role": "user", "parts": [{"text": f"{system_prompt}\n\n{user_prompt}"}]}],
                "generationConfig": {"temperature": 0.2, "maxOutputTokens": 400},
            },
            headers={"x-goog-api-key": str(self.settings.gemini_api_key)},
        )

    def _extract_text(self, body: Dict[str, Any]) -> str:
        parts = body["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)


class OllamaProvider(CompletionProvider):
    provider = LLMProvider.OLLAMA
    label = "Ollama"

    @property
    def model(self) -> Optional[str]:
        return self.settings.ollama_model

    def configuration_error(self) -> Optional[str]:
        if not self.settings.ollama_model:
            return "OLLAMA_MODEL is not set"
        if not self.settings.ollama_base_url:
            return "OLLAMA_BASE_URL is not set"
        return None

    def _build_request(self, system_prompt: str, user_prompt: str) -> request.Request:
        return self._post_json(
            f"{str(self.settings.ollama_base_url).rstrip('/')}/api/generate",
            {
                "model": self.model,
                "prompt": f"{system_prompt}\n\n{user_prompt}",
                "stream": False,
                "options": {"temperature": 0},
            },
        )

    def _extract_text(self, body: Dict[str, Any]) -> str:
        return body["response"]


_PROVIDERS = {
    LLMProvider.OPENAI: OpenAIProvider,
    LLMProvider.GEMINI: GeminiProvider,
    LLMProvider.OLLAMA: OllamaProvider,
}


def build_provider(settings: Settings) -> Optional[CompletionProvider]:
    selected = LLMProvider.parse(settings.llm_provider)
    provider_cls = _PROVIDERS.get(selected)
    if provider_cls is None:
        return None
    return provider_cls(settings)
