"""Abstract LLM provider interface.

All LLM implementations must inherit from this class.
Translation logic never imports a concrete provider directly.
The concrete provider is instantiated once in the FastAPI lifespan
and handed to the PrimaryTranslator.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class LLMResponse:
    """Structured response from an LLM call, including token usage."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.3,
        json_output: bool = False,
    ) -> LLMResponse:
        """Generate a complete response from the LLM.

        Args:
            prompt: The user/input prompt text.
            system_prompt: System-level instructions for the model.
            max_tokens: Maximum tokens in the generated response.
            temperature: Sampling temperature (0.0–1.0).
            json_output: Ask the backend for a JSON response body where
                it supports that. Callers must still parse defensively.

        Returns:
            LLMResponse with text content and token usage counts.

        Raises:
            TranslationBackendError: If the LLM call fails after timeout or API error.
        """
        ...

    @property
    def name(self) -> str:
        return type(self).__name__
