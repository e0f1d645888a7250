"""Envline exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests.
"""


class EnvlineError(Exception):
    """Base exception for all envline errors."""


class EnvlineConfigError(EnvlineError):
    """Raised for invalid user configuration."""


class FormatError(EnvlineError):
    """Raised when a line of `.env` text cannot be parsed.

    The offending line is kept verbatim on `line`.
    """

    def __init__(self, message: str, line: str) -> None:
        super().__init__(message)
        self.line = line
