"""Language detection and language-code comparison.

Detection is advisory: detectors never raise, they return None (unknown)
and the pipeline carries on. Every detected code passes through
normalize_language_code so Chinese input always compares equal to the
traditional-script zh-TW target.
"""

from __future__ import annotations

import re
import unicodedata
from abc import ABC, abstractmethod

import structlog
from langdetect import DetectorFactory, LangDetectException, detect as langdetect_detect

DetectorFactory.seed = 0

logger = structlog.get_logger(__name__)

CHINESE_TARGET = "zh-TW"

_CHINESE_VARIANTS = {
    "zh",
    "zh-cn",
    "zh-tw",
    "zh-hk",
    "zh-sg",
    "zh-hans",
    "zh-hant",
    "cmn",
    "yue",
}
_UNKNOWN_CODES = {"", "und", "unknown", "auto"}


def normalize_language_code(code: str | None) -> str | None:
    """Map a detector's code onto the form used for target comparison.

    Chinese in any script or region becomes zh-TW. Empty and "und" codes
    become None.
    """
    if code is None:
        return None
    cleaned = code.strip().replace("_", "-")
    if cleaned.lower() in _UNKNOWN_CODES:
        return None
    if cleaned.lower() in _CHINESE_VARIANTS:
        return CHINESE_TARGET
    return cleaned


def is_chinese(code: str | None) -> bool:
    return bool(code) and code.lower().split("-")[0] in {"zh", "cmn", "yue"}


def same_language(target: str, source: str | None) -> bool:
    """True when target is the source language.

    Primary subtags compared case-insensitively ("en" matches "en-US" but
    "fi" does not match "fil"), and any Chinese-family source matches the
    zh-TW target.
    """
    if not source:
        return False
    t = target.lower()
    s = source.lower()
    if t.split("-")[0] == s.split("-")[0]:
        return True
    return is_chinese(source) and t == CHINESE_TARGET.lower()


class LanguageDetector(ABC):
    """Best-guess language of free text."""

    @abstractmethod
    async def detect(self, text: str) -> str | None:
        """Return a normalized language code, or None when unknown. Never raises."""
        ...


# Latin-script keyword hints, consulted only when langdetect cannot decide.
# A set must clearly dominate before its language is reported.
INDONESIAN_WORDS = {
    "yang", "dan", "di", "ke", "dari", "ini", "itu", "tidak", "saya", "aku",
    "kamu", "anda", "dengan", "untuk", "ada", "apa", "sudah", "belum", "akan",
    "bisa", "mau", "terima", "kasih", "selamat", "pagi", "siang", "malam",
    "bagaimana", "kenapa", "tolong", "makan", "besok", "hari", "sekarang",
    "juga", "karena", "kita", "kami", "mereka", "sangat", "baik", "ya",
}
ENGLISH_WORDS = {
    "the", "and", "is", "are", "was", "were", "you", "i", "to", "of", "in",
    "it", "that", "have", "has", "for", "not", "with", "this", "what",
    "how", "hello", "hi", "thanks", "thank", "please", "good", "morning",
    "night", "tomorrow", "today", "can", "will", "do", "does", "my", "your",
    "we", "they", "where", "when", "why", "yes", "no",
}

_WORD_PATTERN = re.compile(r"[^\W\d_]+", re.UNICODE)
_MIN_KEYWORD_HITS = 2


def _script_of(char: str) -> str | None:
    code = ord(char)
    if 0x3040 <= code <= 0x30FF or 0x31F0 <= code <= 0x31FF:
        return "ja"
    if 0xAC00 <= code <= 0xD7AF or 0x1100 <= code <= 0x11FF or 0x3130 <= code <= 0x318F:
        return "ko"
    if 0x4E00 <= code <= 0x9FFF or 0x3400 <= code <= 0x4DBF or 0xF900 <= code <= 0xFAFF:
        return "han"
    if 0x0E00 <= code <= 0x0E7F:
        return "th"
    if 0x0400 <= code <= 0x04FF:
        return "ru"
    if 0x0600 <= code <= 0x06FF:
        return "ar"
    if char.isalpha() and unicodedata.name(char, "").startswith("LATIN"):
        return "latin"
    return None


class HeuristicLanguageDetector(LanguageDetector):
    """Local classifier: Unicode script first, langdetect for Latin text.

    No network. Latin text langdetect cannot place falls back to keyword
    hints and otherwise stays unknown so a remote detector decides.
    """

    async def detect(self, text: str) -> str | None:
        try:
            return self.classify(text)
        except Exception as e:
            logger.warning("heuristic_detect_failed", error=str(e))
            return None

    def classify(self, text: str) -> str | None:
        counts: dict[str, int] = {}
        for char in text or "":
            script = _script_of(char)
            if script:
                counts[script] = counts.get(script, 0) + 1
        if not counts:
            return None

        # Japanese text mixes kana with Han; any kana decides it.
        if counts.get("ja"):
            return "ja"
        dominant = max(counts, key=counts.get)
        if dominant == "han":
            return CHINESE_TARGET
        if dominant != "latin":
            return dominant
        return self._classify_latin(text)

    def _classify_latin(self, text: str) -> str | None:
        try:
            return normalize_language_code(langdetect_detect(text))
        except LangDetectException as e:
            logger.debug("langdetect_undecided", error=str(e))

        words = [w.lower() for w in _WORD_PATTERN.findall(text)]
        indonesian = sum(1 for w in words if w in INDONESIAN_WORDS)
        english = sum(1 for w in words if w in ENGLISH_WORDS)
        if indonesian >= _MIN_KEYWORD_HITS and english == 0:
            return "id"
        if english >= _MIN_KEYWORD_HITS and indonesian == 0:
            return "en"
        return None
