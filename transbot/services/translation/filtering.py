"""Decides which per-language results are worth replying with. Pure functions."""

from __future__ import annotations

from transbot.services.language.detection import same_language
from transbot.services.translation.models import (
    FilteredReply,
    TranslatedText,
    TranslationOutcome,
)


def normalize_for_echo(text: str) -> str:
    """Case-fold and keep only letters and digits (any script)."""
    return "".join(ch for ch in text.casefold() if ch.isalnum())


def is_echo(result: str, original: str) -> bool:
    """True when the result is the input again, e.g. numbers, names, emoji."""
    return normalize_for_echo(result) == normalize_for_echo(original)


def filter_results(
    outcome: TranslationOutcome,
    source_language_hint: str | None,
    original_text: str,
) -> FilteredReply:
    """Keep translated, different-language, non-echo results in target order.

    Drops a language when its result failed, when it is the source language
    (prefix-insensitive, any Chinese source matches zh-TW), or when the
    result is textually the input.
    """
    kept: list[tuple[str, str]] = []
    for lang, result in outcome.per_language.items():
        if not isinstance(result, TranslatedText):
            continue
        if same_language(lang, source_language_hint):
            continue
        if is_echo(result.text, original_text):
            continue
        kept.append((lang, result.text))
    return FilteredReply(entries=tuple(kept))
