"""Project configuration loading for envline.

This module is intentionally small and deterministic: it only reads
`envline.toml` and performs light validation.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from envline.errors import EnvlineConfigError

CONFIG_FILENAME = "envline.toml"


@dataclass(frozen=True)
class LoadConfig:
    files: list[str]
    override: bool


@dataclass(frozen=True)
class ParseConfig:
    commands: bool
    seed_environ: bool


@dataclass(frozen=True)
class EnvlineConfig:
    version: int
    load: LoadConfig
    parse: ParseConfig


def default_config() -> EnvlineConfig:
    return EnvlineConfig(
        version=1,
        load=LoadConfig(files=[".env"], override=False),
        parse=ParseConfig(commands=True, seed_environ=True),
    )


def find_project_root(start: Path) -> Path:
    """Walk upward from `start` (file or directory) looking for `envline.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        # If `start` is a broken symlink or otherwise non-stat'able, treat as a
        # path we can still walk from.
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent

    raise EnvlineConfigError(
        f"Could not find {CONFIG_FILENAME} by walking upward from start path."
    )


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise EnvlineConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_str_list(value: Any, *, name: str) -> list[str]:
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise EnvlineConfigError(f"Expected {name} to be a list of strings.")
    return list(value)


def _as_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise EnvlineConfigError(f"Expected {name} to be a boolean.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise EnvlineConfigError(f"Expected {name} to be an integer.")
    return value


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> EnvlineConfig:
    """Load and validate `envline.toml`.

    If neither `root` nor `config_path` are provided, the project root is
    discovered by walking upward from the current working directory.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
        config_path = root / CONFIG_FILENAME

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise EnvlineConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise EnvlineConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise EnvlineConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise EnvlineConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise EnvlineConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise EnvlineConfigError(f"Unsupported config version: {version_i} (expected 1).")

    load_tbl = _as_table(data.get("load"), name="load")
    parse_tbl = _as_table(data.get("parse"), name="parse")

    if "files" in load_tbl:
        files = _as_str_list(load_tbl["files"], name="load.files")
    else:
        files = [".env"]

    if "override" in load_tbl:
        override = _as_bool(load_tbl["override"], name="load.override")
    else:
        override = False

    if "commands" in parse_tbl:
        commands = _as_bool(parse_tbl["commands"], name="parse.commands")
    else:
        commands = True

    if "seed_environ" in parse_tbl:
        seed_environ = _as_bool(parse_tbl["seed_environ"], name="parse.seed_environ")
    else:
        seed_environ = True

    # Validation
    if not files:
        raise EnvlineConfigError("Invalid config: load.files must not be empty.")
    if any(not f.strip() for f in files):
        raise EnvlineConfigError("Invalid config: load.files entries must be non-empty paths.")

    return EnvlineConfig(
        version=version_i,
        load=LoadConfig(files=files, override=override),
        parse=ParseConfig(commands=commands, seed_environ=seed_environ),
    )
