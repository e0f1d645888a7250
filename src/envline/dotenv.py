from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from envline.parser import parse
from envline.substitutions import Substitution

logger = logging.getLogger("envline.dotenv")


def load_dotenv(
    path: Path,
    seed: Mapping[str, str] | None = None,
    *,
    substitutions: Sequence[Substitution] | None = None,
) -> dict[str, str]:
    """Read `path` as UTF-8 and parse it (see `envline.parse`)."""

    text = path.read_text(encoding="utf-8")
    return parse(text, seed, substitutions=substitutions)


def load_dotenv_into_environ(
    path: Path,
    *,
    override: bool = False,
    substitutions: Sequence[Substitution] | None = None,
) -> bool:
    """Load `path` into `os.environ`, without overriding existing keys by default.

    Substitutions see the current process environment. Returns True if the file
    existed and was parsed, otherwise False. `FormatError` propagates.
    """

    if not path.is_file():
        return False

    try:
        vals = load_dotenv(path, dict(os.environ), substitutions=substitutions)
    except OSError as e:
        logger.debug("Failed reading %s: %s", path, e)
        return False

    for k, v in vals.items():
        # Do not override the process environment (including empty-but-present keys).
        if k in os.environ and not override:
            continue
        os.environ[k] = v
    return True
