"""Turn a captured raw value into the string that gets bound.

Quote handling decides everything downstream: single quotes are fully literal,
double quotes expand `\\n`/`\\r` and backslash escapes, and both unquoted and
double-quoted values go through the substitution chain.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from envline.substitutions.base import Substitution

Quote = Literal["'", '"']

_QUOTED = re.compile(r"(['\"])(.*)\1", re.DOTALL)
# Drop the backslash from `\X`, except `\$` which the substitutions still need.
_ESCAPED_CHAR = re.compile(r"\\([^$])", re.DOTALL)


@dataclass(frozen=True, slots=True)
class QuotedValue:
    text: str
    quote: Quote | None

    @classmethod
    def from_raw(cls, raw: str) -> QuotedValue:
        stripped = raw.strip()
        m = _QUOTED.fullmatch(stripped)
        if m is None:
            return cls(text=stripped, quote=None)
        return cls(text=m.group(2), quote=m.group(1))  # type: ignore[arg-type]

    def expand_escapes(self) -> QuotedValue:
        if self.quote != '"':
            return self
        text = self.text.replace("\\n", "\n").replace("\\r", "\r")
        return QuotedValue(text=_ESCAPED_CHAR.sub(r"\1", text), quote=self.quote)

    def substitute(self, env: Mapping[str, str], substitutions: Sequence[Substitution]) -> str:
        if self.quote == "'":
            return self.text
        value = self.text
        for substitution in substitutions:
            value = substitution(value, env)
        return value


def resolve_value(
    raw: str, env: Mapping[str, str], substitutions: Sequence[Substitution]
) -> str:
    """Resolve one raw captured value against the environment built so far."""

    return QuotedValue.from_raw(raw).expand_escapes().substitute(env, substitutions)
