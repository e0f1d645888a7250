"""Line-oriented `.env` parsing.

`parse()` is the whole public contract: text (plus an optional seed mapping used
only for lookups) in, an ordered `dict` of the assignments made by that text out.
Lines are processed strictly in order so that each value can reference the ones
bound before it.
"""

from __future__ import annotations

import logging
import re
from collections import ChainMap
from collections.abc import Mapping, Sequence

from envline.errors import FormatError
from envline.substitutions import Substitution, default_substitutions
from envline.values import resolve_value

logger = logging.getLogger("envline.parser")

_LINE = re.compile(
    r"""
    \A
    \s*
    (?:export\s+)?              # optional export
    ([A-Za-z0-9_.]+)            # key
    (?:\s*=\s*|:\s+?)           # separator
    (                           # optional value begin
      '(?:\\'|[^'])*'           #   single quoted value
      |                         #   or
      "(?:\\"|[^"])*"           #   double quoted value
      |                         #   or
      [^\#\n]+                  #   unquoted value
    )?                          # value end
    \s*
    (?:\#.*)?                   # optional comment
    \Z
    """,
    re.VERBOSE,
)
_BLANK_OR_COMMENT = re.compile(r"\s*(?:#.*)?")
_LINE_BREAKS = re.compile(r"[\n\r]+")


class Parser:
    """Reusable parser bound to one substitution chain.

    `substitutions=None` means the standard chain (variables, then commands); pass
    an empty sequence to disable substitution entirely.
    """

    def __init__(self, substitutions: Sequence[Substitution] | None = None) -> None:
        if substitutions is None:
            substitutions = default_substitutions()
        self.substitutions: tuple[Substitution, ...] = tuple(substitutions)

    def parse(self, text: str, seed: Mapping[str, str] | None = None) -> dict[str, str]:
        out: dict[str, str] = {}
        env: Mapping[str, str] = ChainMap(out, dict(seed or {}))
        for line in _LINE_BREAKS.split(text):
            self._parse_line(line, out, env)
        return out

    def _parse_line(self, line: str, out: dict[str, str], env: Mapping[str, str]) -> None:
        m = _LINE.match(line)
        if m is not None:
            key, raw = m.group(1), m.group(2)
            out[key] = resolve_value(raw or "", env, self.substitutions)
            logger.debug("Bound %s", key)
            return

        words = line.split()
        if words and words[0] == "export":
            if not all(name in env for name in words[1:]):
                raise FormatError(f"Line {line!r} has an unset variable", line)
            return

        if _BLANK_OR_COMMENT.fullmatch(line) is None:
            raise FormatError(f"Line {line!r} doesn't match format", line)


def parse(
    text: str,
    seed: Mapping[str, str] | None = None,
    *,
    substitutions: Sequence[Substitution] | None = None,
) -> dict[str, str]:
    """Parse `.env` text into an ordered mapping of the assignments it makes.

    `seed` is consulted for substitution lookups and bare `export` checks but is
    never copied into the result. Raises `FormatError` on the first malformed line.
    """

    return Parser(substitutions).parse(text, seed)
