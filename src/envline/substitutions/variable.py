"""`$NAME`, `${NAME}` and `${NAME:-default}` interpolation."""

from __future__ import annotations

import re
from collections.abc import Mapping

from envline.substitutions.base import Substitution

_VARIABLE = re.compile(
    r"""
    (?P<escaped>\\)?            # \$ is emitted literally
    \$
    (?!\()                      # $( belongs to command substitution
    (?:
        \{
        (?P<braced>[A-Za-z0-9_]+)
        (?:(?P<op>:?-)(?P<default>[^}]*))?
        \}
        |
        (?P<bare>[A-Za-z0-9_]+)
    )?
    """,
    re.VERBOSE,
)


class VariableSubstitution(Substitution):
    def __call__(self, value: str, env: Mapping[str, str]) -> str:
        return _VARIABLE.sub(lambda m: _substitute(m, env), value)


def _substitute(match: re.Match[str], env: Mapping[str, str]) -> str:
    text = match.group(0)
    if match.group("escaped"):
        return text[1:]

    name = match.group("braced") or match.group("bare")
    if name is None:
        # Lone `$` (or an unterminated `${`): nothing to resolve.
        return text

    current = env.get(name)
    op = match.group("op")
    if op == ":-" and not current:
        return match.group("default")
    if op == "-" and current is None:
        return match.group("default")
    return current or ""
