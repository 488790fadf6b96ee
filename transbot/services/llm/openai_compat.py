"""OpenAI-compatible chat completions provider.

Works against api.openai.com or any OpenAI-compatible endpoint
(base_url override). Selected with PRIMARY_BACKEND=openai.
All external calls have a timeout and structured error logging.
"""

import asyncio

import structlog
from openai import AsyncOpenAI

from transbot.core.exceptions import BackendOverloadedError, TranslationBackendError
from transbot.services.llm.base import LLMProvider, LLMResponse

logger = structlog.get_logger(__name__)

_TIMEOUT_SECONDS = 10


def _is_overload(error_text: str) -> bool:
    text = error_text.lower()
    return (
        "429" in text
        or "503" in text
        or "rate limit" in text
        or "overloaded" in text
    )


class OpenAICompatibleProvider(LLMProvider):
    """Chat completions via the openai SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout_seconds: float = _TIMEOUT_SECONDS,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model
        self._timeout_seconds = timeout_seconds
        logger.info("openai_provider_initialized", model=model, base_url=base_url)

    @property
    def name(self) -> str:
        return f"openai:{self._model}"

    async def generate(
        self,
        prompt: str,
        system_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        json_output: bool = False,
    ) -> LLMResponse:
        """Generate a complete response using chat completions."""
        extra: dict = {}
        if json_output:
            extra["response_format"] = {"type": "json_object"}
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": prompt},
                    ],
                    max_tokens=max_tokens,
                    temperature=temperature,
                    **extra,
                ),
                timeout=self._timeout_seconds,
            )
            text = response.choices[0].message.content or ""
            usage = response.usage
            result = LLMResponse(
                text=text,
                input_tokens=usage.prompt_tokens if usage else 0,
                output_tokens=usage.completion_tokens if usage else 0,
                model=self._model,
            )
            logger.debug(
                "openai_generate_ok",
                model=self._model,
                input_tokens=result.input_tokens,
                output_tokens=result.output_tokens,
            )
            return result
        except asyncio.TimeoutError as e:
            logger.error("openai_generate_timeout", model=self._model)
            raise BackendOverloadedError("OpenAI generate timed out") from e
        except Exception as e:
            message = str(e)
            logger.error(
                "openai_generate_failed",
                error=message,
                model=self._model,
                prompt_len=len(prompt),
            )
            if _is_overload(message):
                raise BackendOverloadedError(
                    f"OpenAI backend overloaded: {e}"
                ) from e
            raise TranslationBackendError(f"OpenAI generate failed: {e}") from e
