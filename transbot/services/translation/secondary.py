"""Secondary translator: Google Cloud Translation v2 REST API via httpx.

Only used after the primary (LLM) translator fails. The v2 API translates
into one target per call, so each target language is an independent request
and a failure for one language never aborts the others.
"""

from __future__ import annotations

import html
from dataclasses import replace
from typing import Any, Sequence

import httpx
import structlog

from transbot.services.language.detection import (
    LanguageDetector,
    normalize_language_code,
    same_language,
)
from transbot.services.translation.models import (
    FAILED_BACKEND_ERROR,
    FAILED_NOT_CONFIGURED,
    Failed,
    LanguageResult,
    TranslatedText,
    TranslationOutcome,
)

logger = structlog.get_logger(__name__)

_TIMEOUT_SECONDS = 10.0
_TRANSLATE_PATH = "/language/translate/v2"
_DETECT_PATH = "/language/translate/v2/detect"


class GoogleTranslateClient:
    """Thin async client for the Cloud Translation v2 translate/detect endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://translation.googleapis.com",
        timeout_seconds: float = _TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(
            timeout=self._timeout_seconds, transport=self._transport
        ) as client:
            response = await client.post(
                f"{self._base_url}{path}",
                params={"key": self._api_key},
                json=payload,
            )
            response.raise_for_status()
            data = response.json()
        if not isinstance(data, dict):
            raise ValueError("Unexpected response body")
        if data.get("error"):
            raise ValueError(f"Google API error: {data['error']}")
        return data

    async def translate(
        self, text: str, target: str, source: str | None = None
    ) -> str:
        """Translate text into one target language.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status.
            ValueError: On an error payload or a missing translation.
        """
        payload: dict[str, Any] = {"q": text, "target": target, "format": "text"}
        if source:
            payload["source"] = source
        data = await self._post(_TRANSLATE_PATH, payload)
        try:
            translated = data["data"]["translations"][0]["translatedText"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError("Response has no translatedText") from e
        if not isinstance(translated, str) or not translated.strip():
            raise ValueError("Empty translatedText")
        return html.unescape(translated).strip()

    async def detect(self, text: str) -> str | None:
        """Return the raw detected language code, or None."""
        data = await self._post(_DETECT_PATH, {"q": text})
        try:
            return data["data"]["detections"][0][0]["language"]
        except (KeyError, IndexError, TypeError):
            return None


class GoogleLanguageDetector(LanguageDetector):
    """LanguageDetector backed by the Cloud Translation detect endpoint."""

    def __init__(self, client: GoogleTranslateClient) -> None:
        self._client = client

    async def detect(self, text: str) -> str | None:
        if not self._client.configured:
            return None
        try:
            language = normalize_language_code(await self._client.detect(text))
        except Exception as e:
            logger.warning("google_detect_failed", error=str(e))
            return None
        logger.debug("google_detect_ok", language=language)
        return language


class SecondaryTranslator:
    """Per-language fallback translation with independent failure per slot."""

    def __init__(self, client: GoogleTranslateClient) -> None:
        self._client = client
        self.detector = GoogleLanguageDetector(client)

    @property
    def configured(self) -> bool:
        return self._client.configured

    async def translate(
        self,
        text: str,
        target_languages: Sequence[str],
        source_language_hint: str | None = None,
    ) -> TranslationOutcome:
        if not self.configured:
            logger.warning("secondary_translator_not_configured")
            return TranslationOutcome.total_failure(
                target_languages, FAILED_NOT_CONFIGURED, backend="google"
            )

        results: dict[str, LanguageResult] = {}
        translated_count = 0
        for lang in target_languages:
            if same_language(lang, source_language_hint):
                # Left untranslated; ResultFilter drops it later.
                results[lang] = TranslatedText(text)
                continue
            try:
                translated = await self._client.translate(
                    text, target=lang, source=source_language_hint
                )
                results[lang] = TranslatedText(translated)
                translated_count += 1
            except Exception as e:
                logger.warning(
                    "secondary_translate_language_failed",
                    language=lang,
                    error=str(e),
                )
                results[lang] = Failed(FAILED_BACKEND_ERROR)

        outcome = TranslationOutcome.from_results(
            target_languages,
            results,
            detected_language=source_language_hint,
            backend="google",
        )
        if translated_count == 0:
            # Passed-through source slots alone are not a successful translation.
            outcome = replace(outcome, succeeded=False)
        logger.info(
            "secondary_translate_complete",
            succeeded=outcome.succeeded,
            languages=outcome.translated_languages(),
        )
        return outcome

