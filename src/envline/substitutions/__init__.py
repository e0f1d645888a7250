"""Substitution strategies applied to values after quote handling."""

from __future__ import annotations

from envline.substitutions.base import Substitution
from envline.substitutions.command import CommandResult, CommandSubstitution, run_shell
from envline.substitutions.variable import VariableSubstitution


def default_substitutions(*, commands: bool = True) -> list[Substitution]:
    """Return a fresh standard chain: variables first, then commands."""

    chain: list[Substitution] = [VariableSubstitution()]
    if commands:
        chain.append(CommandSubstitution())
    return chain


__all__ = [
    "CommandResult",
    "CommandSubstitution",
    "Substitution",
    "VariableSubstitution",
    "default_substitutions",
    "run_shell",
]
