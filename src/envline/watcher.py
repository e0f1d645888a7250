"""Watch mode: re-check `.env` files whenever they change."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install envline[watch]"
        ) from None


def changed_env_files(
    raw_changes: set[tuple[Any, str]], *, env_files: list[Path]
) -> list[Path]:
    """Return the watched files touched by one watchfiles batch, sorted."""
    touched = {Path(p) for _, p in raw_changes}
    return sorted(p for p in env_files if p in touched)


async def run_watch_loop(
    *,
    changes_iter: AsyncIterator[set[tuple[Any, str]]],
    check: Callable[[], int],
    on_event: Callable[[str], None],
    on_error: Callable[[BaseException], None],
    env_files: list[Path],
) -> None:
    """Re-run `check` for every batch of changes that touches one of `env_files`."""
    async for raw_changes in changes_iter:
        changed = changed_env_files(raw_changes, env_files=env_files)
        if not changed:
            continue

        on_event(f"[watch] {', '.join(p.name for p in changed)} changed; re-checking")
        t0 = time.monotonic()
        try:
            rc = check()
        except Exception as exc:
            on_error(exc)
            continue

        status = "ok" if rc == 0 else f"failed (exit {rc})"
        on_event(f"[watch] {status} in {time.monotonic() - t0:.1f}s")


def make_watchfiles_iter(env_files: list[Path]) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch().

    Parent directories are watched rather than the files themselves so that
    editors which save by renaming a temp file over the original are picked up.
    """
    import watchfiles  # type: ignore[import-untyped]

    dirs = sorted({p.parent for p in env_files})
    return watchfiles.awatch(*dirs, debounce=200)
