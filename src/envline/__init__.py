from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from envline.errors import EnvlineConfigError, EnvlineError, FormatError
from envline.parser import Parser, parse
from envline.serialize import format_env
from envline.substitutions import Substitution, default_substitutions


def _package_version() -> str:
    try:
        return version("envline")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "EnvlineConfigError",
    "EnvlineError",
    "FormatError",
    "Parser",
    "Substitution",
    "__version__",
    "default_substitutions",
    "format_env",
    "parse",
]
