"""Unit tests for tolerant structured-output parsing.

Tests:
  - clean JSON parses directly
  - fenced ```json blocks are unwrapped
  - JSON surrounded by chatter is found by outer-brace extraction
  - garbage, empty input and non-object JSON give None
  - custom strategy chains: first success wins
"""

from __future__ import annotations

from transbot.services.translation.parsing import (
    parse_direct,
    parse_outer_braces,
    parse_structured,
    parse_without_fences,
)


class TestParseStructured:
    def test_plain_json(self) -> None:
        assert parse_structured('{"en": "Hello"}') == {"en": "Hello"}

    def test_fenced_json(self) -> None:
        raw = '```json\n{"translations": {"en": "Hi"}}\n```'
        assert parse_structured(raw) == {"translations": {"en": "Hi"}}

    def test_bare_fence_without_language_tag(self) -> None:
        raw = '```\n{"id": "Halo"}\n```'
        assert parse_structured(raw) == {"id": "Halo"}

    def test_json_inside_commentary(self) -> None:
        raw = 'Sure! Here is the result:\n{"en": "Good morning"}\nHope it helps.'
        assert parse_structured(raw) == {"en": "Good morning"}

    def test_nested_braces_are_kept_whole(self) -> None:
        raw = 'Result -> {"translations": {"en": "a", "id": "b"}} <- end'
        assert parse_structured(raw) == {"translations": {"en": "a", "id": "b"}}

    def test_unparseable_text_returns_none(self) -> None:
        assert parse_structured("I cannot translate this, sorry.") is None

    def test_broken_json_returns_none(self) -> None:
        assert parse_structured('{"en": "unterminated') is None

    def test_empty_and_none_return_none(self) -> None:
        assert parse_structured("") is None
        assert parse_structured("   ") is None
        assert parse_structured(None) is None

    def test_json_array_is_not_an_object(self) -> None:
        assert parse_structured('["en", "id"]') is None

    def test_first_successful_strategy_wins(self) -> None:
        calls: list[str] = []

        def first(text: str):
            calls.append("first")
            return None

        def second(text: str):
            calls.append("second")
            return {"picked": "second"}

        def third(text: str):
            calls.append("third")
            return {"picked": "third"}

        assert parse_structured("x", strategies=(first, second, third)) == {
            "picked": "second"
        }
        assert calls == ["first", "second"]


class TestIndividualStrategies:
    def test_direct_rejects_fenced(self) -> None:
        assert parse_direct('```json\n{"a": 1}\n```') is None

    def test_fence_strategy_skips_unfenced_text(self) -> None:
        assert parse_without_fences("no fences here") is None

    def test_outer_braces_without_braces(self) -> None:
        assert parse_outer_braces("nothing structured") is None
