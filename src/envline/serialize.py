"""Render a mapping back into `.env` text that parses to the same mapping."""

from __future__ import annotations

import re
from collections.abc import Mapping

from envline.errors import FormatError
from envline.parser import Parser
from envline.substitutions import CommandResult, CommandSubstitution, VariableSubstitution

_KEY = re.compile(r"[A-Za-z0-9_.]+")


def _double_quoted(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def _unrepresentable(value: str) -> ValueError:
    return ValueError(f"Value cannot be represented in .env syntax: {value!r}")


def format_value(value: str) -> str:
    """Quote a single value so that parsing it yields `value` again.

    Single quotes are preferred since they are fully literal. Values containing a
    single quote or a line break fall back to double quotes. Some of those cannot
    survive a re-parse (a backtick would be executed, a literal backslash followed
    by `n` would become a line break, `$(` without a closing paren keeps its escape),
    so the rendering is parsed back and `ValueError` is raised on any mismatch.
    """

    if "'" not in value and "\n" not in value and "\r" not in value:
        rendered = f"'{value}'"
    else:
        rendered = _double_quoted(value)

    def refuse(command: str, env: Mapping[str, str]) -> CommandResult:
        raise _unrepresentable(value)

    checker = Parser([VariableSubstitution(), CommandSubstitution(refuse)])
    try:
        reparsed = checker.parse(f"V={rendered}")
    except FormatError as e:
        raise _unrepresentable(value) from e
    if reparsed != {"V": value}:
        raise _unrepresentable(value)
    return rendered


def format_env(env: Mapping[str, str]) -> str:
    lines: list[str] = []
    for key, value in env.items():
        if _KEY.fullmatch(key) is None:
            raise ValueError(f"Invalid .env key: {key!r}")
        lines.append(f"{key}={format_value(value)}")
    return "".join(f"{line}\n" for line in lines)
