"""Google Gemini LLM provider implementation.

Uses google-generativeai SDK. One provider instance per model name;
FallbackLLMProvider chains several of them for model switching.
Transient errors (503 / 500 / 429 / "overloaded") are retried on the same
model with a fixed delay, capped at max_attempts. Everything else fails fast.
"""

import asyncio

import google.generativeai as genai
import structlog
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from transbot.core.exceptions import BackendOverloadedError, TranslationBackendError
from transbot.services.llm.base import LLMProvider, LLMResponse

logger = structlog.get_logger(__name__)

_TIMEOUT_SECONDS = 10

# Translation input is arbitrary user chat; blocking it would leave the
# message untranslated rather than make anything safer.
_SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
}

_TRANSIENT_EXCEPTIONS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
    google_exceptions.ResourceExhausted,
    google_exceptions.DeadlineExceeded,
)


def is_transient_error(error: BaseException) -> bool:
    """True for errors worth retrying on the same model."""
    if isinstance(error, (_TRANSIENT_EXCEPTIONS, asyncio.TimeoutError)):
        return True
    text = str(error).lower()
    return any(
        marker in text
        for marker in ("503", "500", "429", "overloaded", "unavailable", "rate limit")
    )


def is_legacy_model(model: str) -> bool:
    """Gemini 1.0 models take no system_instruction and no JSON MIME type."""
    return model == "gemini-pro" or model.startswith("gemini-1.0")


class GeminiProvider(LLMProvider):
    """Gemini implementation of LLMProvider for a single model."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        max_attempts: int = 3,
        retry_delay_seconds: float = 2.0,
        timeout_seconds: float = _TIMEOUT_SECONDS,
    ) -> None:
        genai.configure(api_key=api_key)
        self._model_name = model
        self._max_attempts = max(1, max_attempts)
        self._retry_delay_seconds = retry_delay_seconds
        self._timeout_seconds = timeout_seconds
        logger.info("gemini_provider_initialized", model=model)

    @property
    def name(self) -> str:
        return f"gemini:{self._model_name}"

    def _build_model(self, system_prompt: str) -> genai.GenerativeModel:
        """Build a GenerativeModel, attaching the system instruction when supported."""
        if is_legacy_model(self._model_name):
            return genai.GenerativeModel(
                model_name=self._model_name,
                safety_settings=_SAFETY_SETTINGS,
            )
        return genai.GenerativeModel(
            model_name=self._model_name,
            system_instruction=system_prompt or None,
            safety_settings=_SAFETY_SETTINGS,
        )

    def _build_prompt(self, prompt: str, system_prompt: str) -> str:
        if is_legacy_model(self._model_name) and system_prompt:
            return f"{system_prompt}\n\n{prompt}"
        return prompt

    async def generate(
        self,
        prompt: str,
        system_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        json_output: bool = False,
    ) -> LLMResponse:
        """Generate a complete response, retrying transient failures."""
        model = self._build_model(system_prompt)
        config_kwargs: dict = {
            "max_output_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_output and not is_legacy_model(self._model_name):
            config_kwargs["response_mime_type"] = "application/json"
        generation_config = genai.GenerationConfig(**config_kwargs)
        final_prompt = self._build_prompt(prompt, system_prompt)

        last_error: BaseException | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                response = await model.generate_content_async(
                    final_prompt,
                    generation_config=generation_config,
                    request_options={"timeout": self._timeout_seconds},
                )
            except Exception as e:
                if not is_transient_error(e):
                    logger.error(
                        "gemini_generate_failed",
                        error=str(e),
                        model=self._model_name,
                        prompt_len=len(prompt),
                    )
                    raise TranslationBackendError(
                        f"Gemini generate failed: {e}"
                    ) from e
                last_error = e
                logger.warning(
                    "gemini_generate_transient_error",
                    error=str(e),
                    model=self._model_name,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(self._retry_delay_seconds)
                continue

            text = self._extract_text(response)
            usage = getattr(response, "usage_metadata", None)
            result = LLMResponse(
                text=text,
                input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
                output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
                model=self._model_name,
            )
            logger.debug(
                "gemini_generate_ok",
                model=self._model_name,
                attempt=attempt,
                input_tokens=result.input_tokens,
                output_tokens=result.output_tokens,
            )
            return result

        logger.error(
            "gemini_generate_retries_exhausted",
            model=self._model_name,
            attempts=self._max_attempts,
            error=str(last_error),
        )
        raise BackendOverloadedError(
            f"Gemini {self._model_name} unavailable after {self._max_attempts} attempts"
        ) from last_error

    def _extract_text(self, response) -> str:
        # response.text throws when Gemini returns no valid Part
        # (safety block, empty candidates).
        try:
            return response.text
        except (ValueError, AttributeError):
            text = ""
            if response.candidates:
                try:
                    for part in response.candidates[0].content.parts:
                        if getattr(part, "text", None):
                            text += part.text
                except (IndexError, AttributeError):
                    pass
            if not text:
                logger.warning(
                    "gemini_empty_response",
                    model=self._model_name,
                    candidates=len(response.candidates) if response.candidates else 0,
                )
            return text
