from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping


class Substitution(ABC):
    """One step of the substitution chain applied to unquoted and double-quoted values.

    Strategies are stateless with respect to a parse: everything they may look up
    arrives through `env`, which holds the bindings made so far (plus any seed).
    """

    @abstractmethod
    def __call__(self, value: str, env: Mapping[str, str]) -> str:
        """Return `value` with this strategy's references resolved against `env`."""
