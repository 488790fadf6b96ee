"""Shared pytest fixtures for the transbot test suite.

Provides:
  - MockLLMProvider: LLMProvider returning canned text or raising
  - RecordingSender: reply sender that records (reply_token, text) calls
  - google_transport: httpx.MockTransport factory for Cloud Translation v2
  - test_settings: Settings built from explicit values, no .env involved
  - make_orchestrator: fully wired TranslationOrchestrator over the fakes
All external service calls are faked in every test; no network.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping

import httpx
import pytest

from transbot.core.config import Settings
from transbot.schemas.webhook import WebhookEvent
from transbot.services.language.detection import LanguageDetector
from transbot.services.llm.base import LLMProvider, LLMResponse
from transbot.services.translation.formatting import ReplyFormatter
from transbot.services.translation.orchestrator import TranslationOrchestrator
from transbot.services.translation.primary import PrimaryTranslator
from transbot.services.translation.secondary import (
    GoogleTranslateClient,
    SecondaryTranslator,
)

TARGETS = ["zh-TW", "en", "id"]
FLAGS = {"zh-TW": "🇹🇼", "en": "🇺🇸", "id": "🇮🇩"}
EMPTY_MESSAGE = "🚫 Nothing to translate."
FAILURE_MESSAGE = "⚠️ Sorry, translation is unavailable right now."


# ---------------------------------------------------------------------------
# Mock LLM Provider
# ---------------------------------------------------------------------------


class MockLLMProvider(LLMProvider):
    """Mock LLM provider for testing. Returns configurable responses."""

    def __init__(
        self,
        generate_text: str = "Mock response",
        error: Exception | None = None,
    ) -> None:
        self._generate_text = generate_text
        self._error = error
        self.generate_calls: list[dict[str, Any]] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        json_output: bool = False,
    ) -> LLMResponse:
        self.generate_calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "json_output": json_output,
            }
        )
        if self._error is not None:
            raise self._error
        return LLMResponse(
            text=self._generate_text,
            input_tokens=50,
            output_tokens=10,
            model="mock-model",
        )


def llm_json(
    translations: Mapping[str, Any], detected_lang: str | None = None
) -> str:
    """Render the JSON shape the primary translator asks for."""
    payload: dict[str, Any] = {"translations": dict(translations)}
    if detected_lang is not None:
        payload["detected_lang"] = detected_lang
    return json.dumps(payload, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Fake detector / sender
# ---------------------------------------------------------------------------


class StaticDetector(LanguageDetector):
    """Detector returning a fixed answer and counting calls."""

    def __init__(self, language: str | None) -> None:
        self._language = language
        self.calls: list[str] = []

    async def detect(self, text: str) -> str | None:
        self.calls.append(text)
        return self._language


class RecordingSender:
    """Reply sender that records every reply instead of sending it."""

    def __init__(self, succeed: bool = True) -> None:
        self.replies: list[tuple[str, str]] = []
        self._succeed = succeed

    async def reply(self, reply_token: str, text: str) -> bool:
        self.replies.append((reply_token, text))
        return self._succeed


# ---------------------------------------------------------------------------
# Google Cloud Translation v2 mock transport
# ---------------------------------------------------------------------------


def google_transport(
    translations: Mapping[str, str | int],
    detected: str | None = None,
    requests: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """Mock Cloud Translation v2.

    translations maps target language to translated text; an int value is
    returned as that HTTP error status instead. Missing targets get 400.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        body = json.loads(request.content)
        if request.url.path.endswith("/detect"):
            if detected is None:
                return httpx.Response(200, json={"data": {"detections": [[]]}})
            return httpx.Response(
                200,
                json={"data": {"detections": [[{"language": detected, "confidence": 1}]]}},
            )
        result = translations.get(body["target"])
        if result is None:
            return httpx.Response(
                400, json={"error": {"code": 400, "message": "Bad language pair"}}
            )
        if isinstance(result, int):
            return httpx.Response(result, json={"error": {"code": result}})
        return httpx.Response(
            200, json={"data": {"translations": [{"translatedText": result}]}}
        )

    return httpx.MockTransport(handler)


def make_secondary(
    transport: httpx.AsyncBaseTransport | None, api_key: str = "google-key"
) -> SecondaryTranslator:
    return SecondaryTranslator(
        GoogleTranslateClient(api_key=api_key, transport=transport)
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm() -> MockLLMProvider:
    """Mock LLM provider fixture."""
    return MockLLMProvider()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def formatter() -> ReplyFormatter:
    return ReplyFormatter(flags=FLAGS, default_flag="🌐", empty_message=EMPTY_MESSAGE)


@pytest.fixture
def test_settings() -> Settings:
    """Settings built from explicit values for testing."""
    return Settings(
        line_channel_access_token="line-token",
        line_channel_secret="line-secret",
        gemini_api_key="gemini-key",
        google_translate_api_key="google-key",
        target_languages=TARGETS,
        language_flags=FLAGS,
        nothing_to_translate_message=EMPTY_MESSAGE,
        translation_failed_message=FAILURE_MESSAGE,
    )


@pytest.fixture
def make_orchestrator(
    sender: RecordingSender, formatter: ReplyFormatter
) -> Callable[..., TranslationOrchestrator]:
    """Factory for an orchestrator over fakes; every collaborator overridable."""

    def _make(
        llm: LLMProvider | None = None,
        detector: LanguageDetector | None = None,
        secondary: SecondaryTranslator | None = None,
    ) -> TranslationOrchestrator:
        return TranslationOrchestrator(
            detector=detector or StaticDetector(None),
            primary=PrimaryTranslator(llm or MockLLMProvider()),
            secondary=secondary,
            formatter=formatter,
            sender=sender,
            target_languages=TARGETS,
            failure_message=FAILURE_MESSAGE,
        )

    return _make


def text_event(text: str, reply_token: str = "reply-token-1") -> WebhookEvent:
    """A LINE text message event as parsed from the webhook body."""
    return WebhookEvent.model_validate(
        {
            "type": "message",
            "replyToken": reply_token,
            "webhookEventId": f"evt-{reply_token}",
            "timestamp": 1700000000000,
            "source": {"type": "user", "userId": "U123"},
            "message": {"id": "m1", "type": "text", "text": text},
        }
    )
