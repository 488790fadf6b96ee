"""Integration tests for the full translation pipeline.

Tests:
  - "Hello" detected as en → reply has zh-TW and id lines only
  - fenced JSON from the LLM with no detected language → all three pass
  - unparseable LLM output → Google fallback, 2 of 3 succeed → 2 lines
  - empty / whitespace input → no backend calls, no reply
  - detected source language is always absent from the reply
  - every backend failing → one apologetic reply, no exception
  - self-reported LLM language beats the local detector
"""

from __future__ import annotations

import json

import httpx
import pytest

from transbot.core.exceptions import BackendOverloadedError
from transbot.services.language.detection import HeuristicLanguageDetector
from tests.conftest import (
    FAILURE_MESSAGE,
    EMPTY_MESSAGE,
    MockLLMProvider,
    StaticDetector,
    google_transport,
    llm_json,
    make_secondary,
    text_event,
)

ALL_THREE = {"zh-TW": "你好", "en": "Hello", "id": "Halo"}


@pytest.mark.asyncio
class TestPipelineScenarios:
    async def test_english_input_drops_english_line(self, make_orchestrator, sender) -> None:
        orchestrator = make_orchestrator(
            llm=MockLLMProvider(llm_json(ALL_THREE)),
            detector=StaticDetector("en"),
        )
        await orchestrator.handle(text_event("Hello"))

        assert sender.replies == [("reply-token-1", "🇹🇼 你好\n\n🇮🇩 Halo")]

    async def test_fenced_json_passes_all_languages(self, make_orchestrator, sender) -> None:
        raw = "```json\n" + llm_json({"zh-TW": "謝謝", "en": "Thank you", "id": "Terima kasih"}) + "\n```"
        orchestrator = make_orchestrator(llm=MockLLMProvider(raw))
        await orchestrator.handle(text_event("Merci"))

        assert len(sender.replies) == 1
        assert sender.replies[0][1] == "🇹🇼 謝謝\n\n🇺🇸 Thank you\n\n🇮🇩 Terima kasih"

    async def test_unparseable_primary_falls_back_partially(self, make_orchestrator, sender) -> None:
        requests: list[httpx.Request] = []
        orchestrator = make_orchestrator(
            llm=MockLLMProvider("I am unable to produce JSON today."),
            secondary=make_secondary(
                google_transport(
                    {"zh-TW": "早安", "en": "Good morning", "id": 503},
                    requests=requests,
                )
            ),
        )
        await orchestrator.handle(text_event("Bonjour"))

        assert sender.replies == [("reply-token-1", "🇹🇼 早安\n\n🇺🇸 Good morning")]
        # unknown hint → re-detect through Google, then one call per language
        assert requests[0].url.path.endswith("/detect")
        assert len(requests) == 4

    async def test_whitespace_input_does_nothing(self, make_orchestrator, sender) -> None:
        llm = MockLLMProvider(llm_json(ALL_THREE))
        detector = StaticDetector("en")
        requests: list[httpx.Request] = []
        orchestrator = make_orchestrator(
            llm=llm,
            detector=detector,
            secondary=make_secondary(google_transport(ALL_THREE, requests=requests)),
        )
        await orchestrator.handle(text_event("   \n\t "))

        assert sender.replies == []
        assert llm.generate_calls == []
        assert detector.calls == []
        assert requests == []

    @pytest.mark.parametrize(
        "source, text",
        [("en", "Good night"), ("id", "Selamat malam"), ("zh-TW", "晚安"), ("zh", "晚安")],
    )
    async def test_source_language_never_in_reply(
        self, make_orchestrator, sender, source: str, text: str
    ) -> None:
        orchestrator = make_orchestrator(
            llm=MockLLMProvider(
                llm_json({"zh-TW": "晚安啦", "en": "Good night!!", "id": "Selamat malam ya"})
            ),
            detector=StaticDetector(source),
        )
        await orchestrator.handle(text_event(text))

        flag = {"en": "🇺🇸", "id": "🇮🇩", "zh-TW": "🇹🇼", "zh": "🇹🇼"}[source]
        reply = sender.replies[0][1]
        assert flag not in reply
        assert len(reply.split("\n\n")) == 2

    async def test_total_failure_sends_one_apology(self, make_orchestrator, sender) -> None:
        orchestrator = make_orchestrator(
            llm=MockLLMProvider(error=BackendOverloadedError()),
            secondary=make_secondary(google_transport({})),
        )
        await orchestrator.handle(text_event("Bonjour"))
        assert sender.replies == [("reply-token-1", FAILURE_MESSAGE)]

    async def test_failure_without_fallback_configured(self, make_orchestrator, sender) -> None:
        orchestrator = make_orchestrator(
            llm=MockLLMProvider("not json"),
            secondary=make_secondary(google_transport(ALL_THREE), api_key=""),
        )
        await orchestrator.handle(text_event("Bonjour"))
        assert sender.replies == [("reply-token-1", FAILURE_MESSAGE)]

    async def test_echo_only_input_gets_sentinel(self, make_orchestrator, sender) -> None:
        orchestrator = make_orchestrator(
            llm=MockLLMProvider(llm_json({"zh-TW": "2024", "en": "2024", "id": "2024"}))
        )
        await orchestrator.handle(text_event("2024"))
        assert sender.replies == [("reply-token-1", EMPTY_MESSAGE)]

    async def test_llm_detected_language_wins(self, make_orchestrator, sender) -> None:
        orchestrator = make_orchestrator(
            llm=MockLLMProvider(llm_json(ALL_THREE, detected_lang="id")),
            detector=StaticDetector("en"),
        )
        result = await orchestrator.resolve("Halo teman")
        assert result.source_language == "id"
        assert result.reply_text == "🇹🇼 你好\n\n🇺🇸 Hello"

    async def test_detector_hint_used_when_llm_reports_none(self, make_orchestrator) -> None:
        orchestrator = make_orchestrator(
            llm=MockLLMProvider(llm_json(ALL_THREE)),
            detector=StaticDetector("zh-TW"),
        )
        result = await orchestrator.resolve("哈囉")
        assert result.source_language == "zh-TW"
        assert result.used_fallback is False
        assert "🇹🇼" not in result.reply_text

    async def test_known_hint_skips_google_detection(self, make_orchestrator) -> None:
        requests: list[httpx.Request] = []
        orchestrator = make_orchestrator(
            llm=MockLLMProvider(error=RuntimeError("down")),
            detector=StaticDetector("en"),
            secondary=make_secondary(google_transport(ALL_THREE, requests=requests)),
        )
        result = await orchestrator.resolve("Hello friend")

        assert result.used_fallback is True
        assert not any(r.url.path.endswith("/detect") for r in requests)
        assert result.reply_text == "🇹🇼 你好\n\n🇮🇩 Halo"


@pytest.mark.asyncio
class TestHandleNeverRaises:
    async def test_non_text_events_are_ignored(self, make_orchestrator, sender) -> None:
        from transbot.schemas.webhook import WebhookEvent

        llm = MockLLMProvider(llm_json(ALL_THREE))
        orchestrator = make_orchestrator(llm=llm)
        await orchestrator.handle(
            WebhookEvent.model_validate(
                {"type": "message", "replyToken": "t", "message": {"type": "sticker"}}
            )
        )
        await orchestrator.handle(WebhookEvent.model_validate({"type": "follow", "replyToken": "t"}))

        assert sender.replies == []
        assert llm.generate_calls == []

    async def test_failing_detector_still_replies_once(
        self, make_orchestrator, sender
    ) -> None:
        class ExplodingDetector(StaticDetector):
            async def detect(self, text: str) -> str | None:
                raise RuntimeError("detector bug")

        orchestrator = make_orchestrator(
            llm=MockLLMProvider(llm_json(ALL_THREE, detected_lang="fr")),
            detector=ExplodingDetector(None),
        )
        await orchestrator.handle(text_event("Bonjour"))

        assert sender.replies == [
            ("reply-token-1", "🇹🇼 你好\n\n🇺🇸 Hello\n\n🇮🇩 Halo")
        ]

    async def test_failing_sender_is_swallowed(self, make_orchestrator) -> None:
        class ExplodingSender:
            async def reply(self, reply_token: str, text: str) -> bool:
                raise RuntimeError("sender bug")

        orchestrator = make_orchestrator(llm=MockLLMProvider(llm_json(ALL_THREE)))
        orchestrator._sender = ExplodingSender()
        await orchestrator.handle(text_event("Hello"))

    async def test_spanish_input_keeps_english_line_on_fallback(
        self, make_orchestrator, sender
    ) -> None:
        requests: list[httpx.Request] = []
        orchestrator = make_orchestrator(
            llm=MockLLMProvider(error=BackendOverloadedError("503 overloaded")),
            detector=HeuristicLanguageDetector(),
            secondary=make_secondary(
                google_transport(
                    {"zh-TW": "我沒有錢", "en": "I have no money", "id": "Saya tidak punya uang"},
                    detected="es",
                    requests=requests,
                )
            ),
        )
        await orchestrator.handle(
            text_event("Yo no tengo dinero para comprar la comida de mañana")
        )

        assert sender.replies == [
            (
                "reply-token-1",
                "🇹🇼 我沒有錢\n\n🇺🇸 I have no money\n\n🇮🇩 Saya tidak punya uang",
            )
        ]
        sources = {json.loads(r.content).get("source") for r in requests}
        assert "en" not in sources
