"""Primary translator: one LLM call for all target languages.

The model is asked for strict JSON:
    {"detected_lang": "<code>", "translations": {"<target>": "<text>", ...}}
but its output is treated as untrusted free text and parsed with the
tolerant strategy chain in parsing.py. Never raises: any failure becomes a
failed outcome and the orchestrator falls back.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import structlog

from transbot.core.exceptions import MalformedResponseError
from transbot.services.language.detection import normalize_language_code
from transbot.services.llm.base import LLMProvider
from transbot.services.translation.models import (
    FAILED_BACKEND_ERROR,
    FAILED_NO_VALUE,
    Failed,
    LanguageResult,
    TranslatedText,
    TranslationOutcome,
)
from transbot.services.translation.parsing import parse_structured

logger = structlog.get_logger(__name__)

LANGUAGE_NAMES = {
    "zh-TW": "Traditional Chinese",
    "zh-CN": "Simplified Chinese",
    "en": "English",
    "id": "Indonesian",
    "ja": "Japanese",
    "ko": "Korean",
    "th": "Thai",
    "vi": "Vietnamese",
    "ms": "Malay",
    "tl": "Tagalog",
}


def build_system_prompt(target_languages: Sequence[str]) -> str:
    """Instruction naming every target and pinning the response shape."""
    targets = ", ".join(
        f"{LANGUAGE_NAMES.get(code, code)} ({code})" for code in target_languages
    )
    example = ",\n    ".join(f'"{code}": "..."' for code in target_languages)
    return (
        "You are a professional multilingual translation engine.\n"
        "Tasks:\n"
        "1. Detect the language of the user's message.\n"
        f"2. Translate the message into each of: {targets}.\n"
        "Keep the tone and meaning natural for casual chat. Translate every "
        "language even if the message is already in it.\n\n"
        "Respond with raw JSON only. No Markdown, no code fences, no "
        "explanations. Use exactly this shape:\n"
        "{\n"
        '  "detected_lang": "<ISO 639-1 code of the input, e.g. zh, en, id, ja>",\n'
        '  "translations": {\n'
        f"    {example}\n"
        "  }\n"
        "}"
    )


def build_user_prompt(text: str) -> str:
    return f"Translate the following message:\n{text}"


def extract_translations(
    payload: Mapping[str, Any], target_languages: Sequence[str]
) -> dict[str, LanguageResult]:
    """Pull one string per target out of a nested or flat mapping."""
    translations = payload.get("translations")
    source: Mapping[str, Any] = (
        translations if isinstance(translations, Mapping) else payload
    )
    lowered = {str(k).lower(): v for k, v in source.items()}

    results: dict[str, LanguageResult] = {}
    for lang in target_languages:
        value = source.get(lang, lowered.get(lang.lower()))
        if isinstance(value, str) and value.strip():
            results[lang] = TranslatedText(value.strip())
        else:
            results[lang] = Failed(FAILED_NO_VALUE)
    return results


class PrimaryTranslator:
    """LLM-backed translation of one message into all target languages."""

    def __init__(
        self,
        llm: LLMProvider,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> None:
        self._llm = llm
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def translate(
        self, text: str, target_languages: Sequence[str]
    ) -> TranslationOutcome:
        try:
            response = await self._llm.generate(
                prompt=build_user_prompt(text),
                system_prompt=build_system_prompt(target_languages),
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                json_output=True,
            )
            payload = parse_structured(response.text)
            if payload is None:
                raise MalformedResponseError(
                    f"Unparseable LLM output ({len(response.text)} chars)"
                )
        except Exception as e:
            logger.warning(
                "primary_translate_failed",
                provider=self._llm.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return TranslationOutcome.total_failure(
                target_languages, FAILED_BACKEND_ERROR, backend=self._llm.name
            )

        detected = payload.get("detected_lang")
        outcome = TranslationOutcome.from_results(
            target_languages,
            extract_translations(payload, target_languages),
            detected_language=(
                normalize_language_code(detected) if isinstance(detected, str) else None
            ),
            backend=response.model or self._llm.name,
        )
        log = logger.info if outcome.succeeded else logger.warning
        log(
            "primary_translate_complete",
            succeeded=outcome.succeeded,
            languages=outcome.translated_languages(),
            detected_language=outcome.detected_language,
            backend=outcome.backend,
        )
        return outcome
