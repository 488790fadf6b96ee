"""Tolerant parsing of LLM output that is supposed to be JSON.

Backends are asked for strict JSON but return free text. Parsing runs an
ordered chain of strategies; each returns a dict or None, first dict wins:

1. direct json.loads of the trimmed text
2. strip fenced-code markers (```json / ```) and retry
3. regex-extract the outermost {...} span and retry
"""

import json
import re
from typing import Any, Callable, Optional, Sequence

ParseStrategy = Callable[[str], Optional[dict[str, Any]]]

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?")
_OUTER_BRACES_PATTERN = re.compile(r"\{[\s\S]*\}")


def _loads_object(text: str) -> Optional[dict[str, Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def parse_direct(text: str) -> Optional[dict[str, Any]]:
    return _loads_object(text.strip())


def parse_without_fences(text: str) -> Optional[dict[str, Any]]:
    cleaned = _FENCE_PATTERN.sub("", text).strip()
    if cleaned == text.strip():
        return None
    return _loads_object(cleaned)


def parse_outer_braces(text: str) -> Optional[dict[str, Any]]:
    match = _OUTER_BRACES_PATTERN.search(text)
    if match is None:
        return None
    return _loads_object(match.group(0))


DEFAULT_STRATEGIES: tuple[ParseStrategy, ...] = (
    parse_direct,
    parse_without_fences,
    parse_outer_braces,
)


def parse_structured(
    text: str | None,
    strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES,
) -> Optional[dict[str, Any]]:
    """Return the first object any strategy can parse out of text, else None."""
    if not text or not text.strip():
        return None
    for strategy in strategies:
        result = strategy(text)
        if result is not None:
            return result
    return None
