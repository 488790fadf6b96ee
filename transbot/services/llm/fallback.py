"""Fallback LLM provider. Tries each provider in order until one succeeds.

Used for model switching on the primary tier (e.g. gemini-1.5-flash first,
gemini-pro second). Switching to the secondary translation backend is the
orchestrator's job, not this class's.
"""

from typing import Sequence

import structlog

from transbot.core.exceptions import TranslationBackendError
from transbot.services.llm.base import LLMProvider, LLMResponse

logger = structlog.get_logger(__name__)


class FallbackLLMProvider(LLMProvider):
    """Tries providers in order; moves to the next one on any error."""

    def __init__(self, providers: Sequence[LLMProvider]) -> None:
        if not providers:
            raise ValueError("FallbackLLMProvider needs at least one provider")
        self._providers = list(providers)
        logger.info(
            "fallback_provider_initialized",
            providers=[p.name for p in self._providers],
        )

    @property
    def name(self) -> str:
        return " -> ".join(p.name for p in self._providers)

    async def generate(
        self,
        prompt: str,
        system_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        json_output: bool = False,
    ) -> LLMResponse:
        """Try each provider's generate(); raise only when all have failed."""
        last_error: Exception | None = None
        for index, provider in enumerate(self._providers):
            try:
                return await provider.generate(
                    prompt, system_prompt, max_tokens, temperature, json_output
                )
            except Exception as err:
                last_error = err
                has_next = index < len(self._providers) - 1
                logger.warning(
                    "provider_generate_failed_switching"
                    if has_next
                    else "provider_generate_failed_chain_exhausted",
                    provider=provider.name,
                    error=str(err),
                )
        raise TranslationBackendError(
            f"All LLM providers failed: {last_error}"
        ) from last_error
