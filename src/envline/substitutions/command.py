"""Inline command execution: `$(command)` and `` `command` ``.

A failing command (non-zero exit or a spawn error) substitutes the empty string
and logs a warning; it never aborts the parse.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from envline.substitutions.base import Substitution

logger = logging.getLogger("envline.substitutions.command")

_OPENER = re.compile(r"(?P<escaped>\\)?(?P<opener>\$\(|`)")


@dataclass(frozen=True, slots=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str = ""


Runner = Callable[[str, Mapping[str, str]], CommandResult]


def run_shell(command: str, env: Mapping[str, str]) -> CommandResult:
    """Run `command` through the system shell with `env` overlaid on `os.environ`."""

    merged = dict(os.environ)
    merged.update(env)
    proc = subprocess.run(
        command,
        shell=True,
        check=False,
        text=True,
        capture_output=True,
        env=merged,
    )
    return CommandResult(returncode=int(proc.returncode), stdout=proc.stdout, stderr=proc.stderr)


def _matching_paren(value: str, start: int) -> int:
    depth = 1
    for i in range(start, len(value)):
        ch = value[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _literal(opener: str, body: str) -> str:
    if opener == "`":
        # \`date\` closes on the escaped backtick; drop that backslash too.
        if body.endswith("\\"):
            body = body[:-1]
        return f"`{body}`"
    return f"$({body})"


class CommandSubstitution(Substitution):
    def __init__(self, runner: Runner | None = None) -> None:
        self._runner = runner or run_shell

    def __call__(self, value: str, env: Mapping[str, str]) -> str:
        parts: list[str] = []
        pos = 0
        while True:
            match = _OPENER.search(value, pos)
            if match is None:
                break

            body_start = match.end()
            if match.group("opener") == "`":
                end = value.find("`", body_start)
            else:
                end = _matching_paren(value, body_start)
            if end == -1:
                # Unterminated: the remainder stays literal.
                break

            parts.append(value[pos : match.start()])
            if match.group("escaped"):
                parts.append(_literal(match.group("opener"), value[body_start:end]))
            else:
                parts.append(self._run(value[body_start:end], env))
            pos = end + 1

        parts.append(value[pos:])
        return "".join(parts)

    def _run(self, command: str, env: Mapping[str, str]) -> str:
        if not command.strip():
            return ""

        logger.debug("Running command substitution: %s", command)
        try:
            result = self._runner(command, env)
        except OSError as e:
            logger.warning("Command substitution %r could not be started: %s", command, e)
            return ""

        if result.returncode != 0:
            logger.warning(
                "Command substitution %r exited with status %d; substituting ''",
                command,
                result.returncode,
            )
            if result.stderr:
                logger.debug("Command stderr: %s", result.stderr.rstrip())
            return ""
        return result.stdout.rstrip("\n")
