from __future__ import annotations

import asyncio
import sys
import types
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from envline.watcher import changed_env_files, check_watchfiles_available, run_watch_loop

ENV = Path("/p/.env")
LOCAL = Path("/p/.env.local")


def test_missing_watchfiles_points_at_the_extra(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "watchfiles", None)
    with pytest.raises(ImportError, match="pip install envline\\[watch\\]"):
        check_watchfiles_available()


def test_installed_watchfiles_passes(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "watchfiles", types.ModuleType("watchfiles"))
    check_watchfiles_available()


def test_changed_env_files_ignores_unwatched_paths() -> None:
    batch = {(1, "/p/.env.swp"), (2, "/p/.env.local"), (1, "/p/src/app.py"), (2, "/p/.env")}
    assert changed_env_files(batch, env_files=[LOCAL, ENV]) == [ENV, LOCAL]
    assert changed_env_files({(1, "/p/notes.txt")}, env_files=[ENV]) == []


async def _batches(*batches: set[tuple[Any, str]]) -> AsyncIterator[set[tuple[Any, str]]]:
    for batch in batches:
        yield batch


def _watch(check, *batches: set[tuple[Any, str]]) -> tuple[list[str], list[BaseException]]:
    events: list[str] = []
    errors: list[BaseException] = []
    asyncio.run(
        run_watch_loop(
            changes_iter=_batches(*batches),
            check=check,
            on_event=events.append,
            on_error=errors.append,
            env_files=[ENV],
        )
    )
    return events, errors


def test_only_relevant_batches_trigger_a_check() -> None:
    calls: list[int] = []

    def check() -> int:
        calls.append(1)
        return 0

    events, errors = _watch(check, {(1, "/p/.env")}, {(1, "/p/notes.txt")})
    assert len(calls) == 1
    assert errors == []
    assert events[0] == "[watch] .env changed; re-checking"
    assert events[1].startswith("[watch] ok in ")


def test_failed_check_is_reported() -> None:
    events, _ = _watch(lambda: 2, {(1, "/p/.env")})
    assert events[-1].startswith("[watch] failed (exit 2)")


def test_errors_are_reported_and_watching_continues() -> None:
    results = iter([RuntimeError("boom"), 0])

    def check() -> int:
        item = next(results)
        if isinstance(item, Exception):
            raise item
        return item

    events, errors = _watch(check, {(1, "/p/.env")}, {(2, "/p/.env")})
    assert [str(e) for e in errors] == ["boom"]
    assert events[-1].startswith("[watch] ok in ")
