from __future__ import annotations

import os
from pathlib import Path

import pytest

from envline.dotenv import load_dotenv, load_dotenv_into_environ
from envline.errors import FormatError
from envline.substitutions import VariableSubstitution


def test_load_dotenv_parses_file(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text(
        "\n".join(
            [
                "# comment",
                "OPENAI_API_KEY=sk-test",
                "export FOO=bar",
                "QUOTED='hello world'",
                'DQUOTED="hi there"',
                "EMPTY=",
                "REF=${FOO}-baz",
                "",
            ]
        ),
        encoding="utf-8",
    )

    vals = load_dotenv(p)
    assert vals == {
        "OPENAI_API_KEY": "sk-test",
        "FOO": "bar",
        "QUOTED": "hello world",
        "DQUOTED": "hi there",
        "EMPTY": "",
        "REF": "bar-baz",
    }


def test_load_dotenv_uses_seed_and_substitutions(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text("URL=http://$HOST/$(never run)\n", encoding="utf-8")

    vals = load_dotenv(p, {"HOST": "example.org"}, substitutions=[VariableSubstitution()])
    assert vals == {"URL": "http://example.org/$(never run)"}


def test_load_dotenv_raises_on_bad_line(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text("NOEQUALS\n", encoding="utf-8")

    with pytest.raises(FormatError) as ei:
        load_dotenv(p)
    assert ei.value.line == "NOEQUALS"


def test_load_dotenv_into_environ_does_not_override_existing(monkeypatch, tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text("A=1\nB=2\n", encoding="utf-8")

    monkeypatch.setenv("A", "existing")
    monkeypatch.delenv("B", raising=False)

    ok = load_dotenv_into_environ(p)
    assert ok is True
    assert os.environ["A"] == "existing"
    assert os.environ["B"] == "2"


def test_load_dotenv_into_environ_override(monkeypatch, tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text("A=1\n", encoding="utf-8")

    monkeypatch.setenv("A", "existing")

    assert load_dotenv_into_environ(p, override=True) is True
    assert os.environ["A"] == "1"


def test_load_dotenv_into_environ_resolves_against_process_env(
    monkeypatch, tmp_path: Path
) -> None:
    p = tmp_path / ".env"
    p.write_text("ENVLINE_GREETING=hello $ENVLINE_WHO\n", encoding="utf-8")

    monkeypatch.setenv("ENVLINE_WHO", "world")
    monkeypatch.delenv("ENVLINE_GREETING", raising=False)

    assert load_dotenv_into_environ(p) is True
    assert os.environ["ENVLINE_GREETING"] == "hello world"


def test_load_dotenv_into_environ_returns_false_when_missing(tmp_path: Path) -> None:
    p = tmp_path / "missing.env"
    assert load_dotenv_into_environ(p) is False
