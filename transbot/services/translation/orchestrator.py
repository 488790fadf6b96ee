"""Translation-resolution pipeline for one incoming chat message.

TranslationOrchestrator.handle() does exactly these things in order:
1. Start: ignore non-text events and text that is empty after trimming
2. Detecting: local language detection (advisory, never fatal)
3. PrimaryAttempt: LLM translation of all target languages
4. FallbackAttempt: only if no primary language succeeded, per-language
   Google Translate, re-detecting through Google if the hint is unknown
5. Done: filter, format, send exactly one reply

handle() never raises. The webhook has already been acknowledged by the
time it runs, so every failure ends in a log line, not an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

import structlog

from transbot.schemas.webhook import WebhookEvent
from transbot.services.language.detection import LanguageDetector
from transbot.services.translation.filtering import filter_results
from transbot.services.translation.formatting import ReplyFormatter
from transbot.services.translation.models import (
    FAILED_NOT_CONFIGURED,
    TranslationOutcome,
    TranslationRequest,
)
from transbot.services.translation.primary import PrimaryTranslator
from transbot.services.translation.secondary import SecondaryTranslator

logger = structlog.get_logger(__name__)


async def _detect(detector: LanguageDetector, text: str) -> str | None:
    """Detection is advisory; a failing detector means an unknown language."""
    try:
        return await detector.detect(text)
    except Exception as e:
        logger.warning(
            "language_detect_failed",
            detector=type(detector).__name__,
            error=str(e),
        )
        return None


class ReplySender(Protocol):
    async def reply(self, reply_token: str, text: str) -> bool: ...


@dataclass(frozen=True)
class PipelineResult:
    """What the pipeline decided for one message; reply_text None means no reply."""

    reply_text: str | None
    source_language: str | None = None
    backend: str | None = None
    used_fallback: bool = False


class TranslationOrchestrator:
    """Composes detector, translators, filter and formatter."""

    def __init__(
        self,
        detector: LanguageDetector,
        primary: PrimaryTranslator,
        secondary: SecondaryTranslator | None,
        formatter: ReplyFormatter,
        sender: ReplySender,
        target_languages: Sequence[str],
        failure_message: str,
    ) -> None:
        self._detector = detector
        self._primary = primary
        self._secondary = secondary
        self._formatter = formatter
        self._sender = sender
        self._target_languages = tuple(target_languages)
        self._failure_message = failure_message

    async def resolve(self, text: str | None) -> PipelineResult:
        """Run the pipeline for one message and return the reply to send."""
        request = TranslationRequest.create(text, self._target_languages)
        if request is None:
            logger.debug("translation_skipped_empty_input")
            return PipelineResult(reply_text=None)

        detected = await _detect(self._detector, request.source_text)
        logger.info(
            "translation_request_received",
            text_len=len(request.source_text),
            detected_language=detected,
        )

        outcome = await self._primary.translate(
            request.source_text, request.target_languages
        )
        used_fallback = False
        if outcome.succeeded:
            # The LLM saw the same text in the same call; its answer wins.
            source_language = outcome.detected_language or detected
        else:
            used_fallback = True
            source_language = detected
            outcome, source_language = await self._fallback(request, source_language)

        if not outcome.succeeded:
            logger.error(
                "translation_all_backends_failed",
                text_len=len(request.source_text),
                fallback_configured=self._secondary is not None
                and self._secondary.configured,
            )
            return PipelineResult(
                reply_text=self._failure_message,
                source_language=source_language,
                used_fallback=used_fallback,
            )

        filtered = filter_results(outcome, source_language, request.source_text)
        logger.info(
            "translation_resolved",
            backend=outcome.backend,
            source_language=source_language,
            kept_languages=filtered.languages(),
            used_fallback=used_fallback,
        )
        return PipelineResult(
            reply_text=self._formatter.format(filtered),
            source_language=source_language,
            backend=outcome.backend,
            used_fallback=used_fallback,
        )

    async def _fallback(
        self, request: TranslationRequest, hint: str | None
    ) -> tuple[TranslationOutcome, str | None]:
        if self._secondary is None or not self._secondary.configured:
            logger.warning("translation_fallback_unavailable")
            return (
                TranslationOutcome.total_failure(
                    request.target_languages, FAILED_NOT_CONFIGURED
                ),
                hint,
            )
        logger.warning("translation_primary_failed_falling_back")
        if hint is None:
            hint = await _detect(self._secondary.detector, request.source_text)
        outcome = await self._secondary.translate(
            request.source_text, request.target_languages, hint
        )
        return outcome, hint

    async def handle(self, event: WebhookEvent) -> None:
        """Process one webhook event end to end. Never raises."""
        if not event.is_text_message or not event.reply_token:
            logger.debug("event_ignored", event_type=event.type)
            return
        try:
            result = await self.resolve(event.message.text)
            if result.reply_text is None:
                return
            await self._sender.reply(event.reply_token, result.reply_text)
        except Exception as e:
            logger.error(
                "event_handling_failed",
                error=str(e),
                error_type=type(e).__name__,
                event_id=event.webhook_event_id,
            )
