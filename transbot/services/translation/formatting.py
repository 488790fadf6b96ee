"""Renders the filtered translations into one chat reply."""

from __future__ import annotations

from typing import Mapping

from transbot.services.translation.models import FilteredReply


class ReplyFormatter:
    """Flag-prefixed lines separated by a blank line."""

    def __init__(
        self,
        flags: Mapping[str, str],
        default_flag: str = "🌐",
        empty_message: str = "🚫 Nothing to translate.",
    ) -> None:
        self._flags = dict(flags)
        self._default_flag = default_flag
        self._empty_message = empty_message

    @property
    def empty_message(self) -> str:
        return self._empty_message

    def marker(self, language: str) -> str:
        return self._flags.get(language, self._default_flag)

    def format(self, reply: FilteredReply) -> str:
        """Never returns an empty string; falls back to the empty-reply sentinel."""
        if not reply:
            return self._empty_message
        return "\n\n".join(
            f"{self.marker(lang)} {text}" for lang, text in reply.entries
        )
