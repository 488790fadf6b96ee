"""Value objects passed between the translation pipeline stages.

Nothing here outlives a single request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence, Union

FAILED_NO_VALUE = "no-value"
FAILED_BACKEND_ERROR = "backend-error"
FAILED_NOT_CONFIGURED = "not-configured"


@dataclass(frozen=True)
class TranslatedText:
    text: str


@dataclass(frozen=True)
class Failed:
    reason: str


LanguageResult = Union[TranslatedText, Failed]


def unique_languages(codes: Iterable[str]) -> tuple[str, ...]:
    """Case-insensitive dedupe preserving first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for code in codes:
        if not code:
            continue
        lowered = code.lower()
        if lowered in seen:
            continue
        seen.add(lowered)
        unique.append(code)
    return tuple(unique)


@dataclass(frozen=True)
class TranslationRequest:
    """Trimmed, non-empty source text plus the fixed target language set."""

    source_text: str
    target_languages: tuple[str, ...]

    @classmethod
    def create(
        cls, text: str | None, target_languages: Sequence[str]
    ) -> TranslationRequest | None:
        """Build a request, or None when the text is empty after trimming."""
        source = (text or "").strip()
        if not source:
            return None
        targets = unique_languages(target_languages)
        if not targets:
            raise ValueError("target_languages must not be empty")
        return cls(source_text=source, target_languages=targets)


@dataclass(frozen=True)
class TranslationOutcome:
    """One result per requested target language.

    succeeded is True when at least one language produced text.
    """

    per_language: Mapping[str, LanguageResult]
    succeeded: bool
    detected_language: str | None = None
    backend: str = ""

    @classmethod
    def from_results(
        cls,
        target_languages: Sequence[str],
        results: Mapping[str, LanguageResult],
        detected_language: str | None = None,
        backend: str = "",
    ) -> TranslationOutcome:
        """Fill every requested slot, marking absent ones as no-value."""
        per_language = {
            lang: results.get(lang, Failed(FAILED_NO_VALUE))
            for lang in target_languages
        }
        succeeded = any(
            isinstance(result, TranslatedText) for result in per_language.values()
        )
        return cls(
            per_language=per_language,
            succeeded=succeeded,
            detected_language=detected_language,
            backend=backend,
        )

    @classmethod
    def total_failure(
        cls, target_languages: Sequence[str], reason: str, backend: str = ""
    ) -> TranslationOutcome:
        return cls(
            per_language={lang: Failed(reason) for lang in target_languages},
            succeeded=False,
            backend=backend,
        )

    def translated_languages(self) -> list[str]:
        return [
            lang
            for lang, result in self.per_language.items()
            if isinstance(result, TranslatedText)
        ]


@dataclass(frozen=True)
class FilteredReply:
    """Ordered (language_code, display_text) pairs that survived filtering."""

    entries: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def languages(self) -> list[str]:
        return [lang for lang, _ in self.entries]
