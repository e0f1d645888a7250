from __future__ import annotations

from collections.abc import Mapping

from envline.substitutions import Substitution
from envline.values import QuotedValue, resolve_value


class _Upper(Substitution):
    def __call__(self, value: str, env: Mapping[str, str]) -> str:
        return value.upper()


class _Suffix(Substitution):
    def __call__(self, value: str, env: Mapping[str, str]) -> str:
        return value + env.get("SUFFIX", "")


def test_from_raw_detects_quote_character() -> None:
    assert QuotedValue.from_raw("  'a b'  ") == QuotedValue(text="a b", quote="'")
    assert QuotedValue.from_raw('"a b"') == QuotedValue(text="a b", quote='"')
    assert QuotedValue.from_raw(" a b ") == QuotedValue(text="a b", quote=None)


def test_from_raw_requires_matching_pair() -> None:
    assert QuotedValue.from_raw("'a\"") == QuotedValue(text="'a\"", quote=None)
    assert QuotedValue.from_raw('"') == QuotedValue(text='"', quote=None)


def test_from_raw_empty_quotes() -> None:
    assert QuotedValue.from_raw('""') == QuotedValue(text="", quote='"')


def test_expand_escapes_only_for_double_quotes() -> None:
    raw = r"a\nb\$c\x"
    assert QuotedValue(text=raw, quote='"').expand_escapes().text == "a\nb\\$cx"
    assert QuotedValue(text=raw, quote="'").expand_escapes().text == raw
    assert QuotedValue(text=raw, quote=None).expand_escapes().text == raw


def test_substitutions_are_folded_in_order() -> None:
    chain = [_Upper(), _Suffix()]
    assert resolve_value("abc", {"SUFFIX": "-x"}, chain) == "ABC-x"
    assert resolve_value("abc", {"SUFFIX": "-x"}, list(reversed(chain))) == "ABC-X"


def test_single_quotes_skip_substitutions() -> None:
    assert resolve_value("'abc'", {"SUFFIX": "-x"}, [_Upper(), _Suffix()]) == "abc"


def test_double_quotes_still_substitute() -> None:
    assert resolve_value('"abc"', {}, [_Upper()]) == "ABC"
