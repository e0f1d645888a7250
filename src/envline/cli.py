from __future__ import annotations

import argparse
import asyncio
import json
import os
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

from envline import __version__
from envline.config import (
    CONFIG_FILENAME,
    EnvlineConfig,
    default_config,
    find_project_root,
    load_config,
)
from envline.dotenv import load_dotenv
from envline.errors import EnvlineConfigError, FormatError
from envline.serialize import format_env
from envline.substitutions import default_substitutions

EXIT_OK = 0
EXIT_CONFIG_OR_FORMAT = 2
EXIT_COMMAND_NOT_FOUND = 127


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root (defaults to searching upward from cwd for envline.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to envline.toml (defaults to <root>/envline.toml).",
    )
    p.add_argument(
        "-f",
        "--file",
        dest="files",
        action="append",
        default=[],
        help="A .env file to read (repeatable; overrides load.files).",
    )
    p.add_argument(
        "--no-commands",
        action="store_true",
        help="Disable $(...) and `...` command substitution.",
    )
    p.add_argument(
        "--no-seed-environ",
        action="store_true",
        help="Do not resolve references against the current process environment.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="envline")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_p = subparsers.add_parser("parse", help="Print the resolved variables.")
    _add_common_flags(parse_p)
    parse_p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print a JSON object instead of .env lines.",
    )

    check_p = subparsers.add_parser("check", help="Validate .env files.")
    _add_common_flags(check_p)
    check_p.add_argument(
        "--watch",
        action="store_true",
        help="Re-check whenever a file changes (requires envline[watch]).",
    )

    run_p = subparsers.add_parser("run", help="Run a command with the variables set.")
    _add_common_flags(run_p)
    run_p.add_argument(
        "--override",
        action="store_true",
        help="Let file values replace variables already in the environment.",
    )
    run_p.add_argument("cmd", nargs=argparse.REMAINDER, help="Command to run (after --).")

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _load_config(args: argparse.Namespace) -> tuple[Path, EnvlineConfig]:
    if args.config:
        config_path = Path(args.config).resolve()
        return config_path.parent, load_config(config_path=config_path)

    if args.root:
        root = Path(args.root).resolve()
        if (root / CONFIG_FILENAME).is_file():
            return root, load_config(root=root)
        return root, default_config()

    try:
        root = find_project_root(Path.cwd())
    except EnvlineConfigError:
        # No envline.toml anywhere above cwd: plain defaults.
        return Path.cwd().resolve(), default_config()
    return root, load_config(root=root)


def _env_files(args: argparse.Namespace, root: Path, cfg: EnvlineConfig) -> list[Path]:
    if args.files:
        return [Path(f).resolve() for f in args.files]
    return [(root / f).resolve() for f in cfg.load.files]


def _load_all(
    args: argparse.Namespace, cfg: EnvlineConfig, files: Sequence[Path]
) -> list[tuple[Path, dict[str, str]]]:
    """Parse `files` in order; each one sees the variables bound by earlier files."""

    commands = cfg.parse.commands and not bool(args.no_commands)
    seed_environ = cfg.parse.seed_environ and not bool(args.no_seed_environ)
    base: dict[str, str] = dict(os.environ) if seed_environ else {}

    combined: dict[str, str] = {}
    out: list[tuple[Path, dict[str, str]]] = []
    for path in files:
        vals = load_dotenv(
            path,
            {**base, **combined},
            substitutions=default_substitutions(commands=commands),
        )
        combined.update(vals)
        out.append((path, vals))
    return out


def _merged(results: Sequence[tuple[Path, dict[str, str]]]) -> dict[str, str]:
    merged: dict[str, str] = {}
    for _, vals in results:
        merged.update(vals)
    return merged


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_error(e: BaseException) -> None:
    if isinstance(e, FileNotFoundError) and e.filename:
        _eprint(f"error: no such file: {e.filename}")
        return
    msg = (str(e) or repr(e)).strip()
    _eprint(f"error: {msg}")


def cmd_parse(args: argparse.Namespace) -> int:
    try:
        root, cfg = _load_config(args)
        results = _load_all(args, cfg, _env_files(args, root, cfg))
        merged = _merged(results)
        if bool(args.json_output):
            print(json.dumps(merged, indent=2))
        else:
            sys.stdout.write(format_env(merged))
        return EXIT_OK
    except (EnvlineConfigError, FormatError, OSError, ValueError) as e:
        _print_error(e)
        return EXIT_CONFIG_OR_FORMAT


def _check_once(args: argparse.Namespace) -> int:
    try:
        root, cfg = _load_config(args)
        files = _env_files(args, root, cfg)
        for path, _ in _load_all(args, cfg, files):
            print(f"ok: {path}")
        return EXIT_OK
    except (EnvlineConfigError, FormatError, OSError) as e:
        _print_error(e)
        return EXIT_CONFIG_OR_FORMAT


def _watch(args: argparse.Namespace) -> int:
    from envline import watcher

    try:
        watcher.check_watchfiles_available()
        root, cfg = _load_config(args)
    except (ImportError, EnvlineConfigError) as e:
        _print_error(e)
        return EXIT_CONFIG_OR_FORMAT

    env_files = _env_files(args, root, cfg)
    _check_once(args)
    _eprint(f"[watch] watching {len(env_files)} file(s); Ctrl-C to stop")
    try:
        asyncio.run(
            watcher.run_watch_loop(
                changes_iter=watcher.make_watchfiles_iter(env_files),
                check=lambda: _check_once(args),
                on_event=_eprint,
                on_error=_print_error,
                env_files=env_files,
            )
        )
    except KeyboardInterrupt:
        pass
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    if bool(args.watch):
        return _watch(args)
    return _check_once(args)


def cmd_run(args: argparse.Namespace) -> int:
    argv = list(args.cmd or [])
    if argv and argv[0] == "--":
        argv = argv[1:]
    if not argv:
        _eprint("error: no command given (usage: envline run [options] -- CMD [ARGS...])")
        return EXIT_CONFIG_OR_FORMAT

    try:
        root, cfg = _load_config(args)
        merged = _merged(_load_all(args, cfg, _env_files(args, root, cfg)))
    except (EnvlineConfigError, FormatError, OSError) as e:
        _print_error(e)
        return EXIT_CONFIG_OR_FORMAT

    override = cfg.load.override or bool(args.override)
    env = dict(os.environ)
    for k, v in merged.items():
        if k in env and not override:
            continue
        env[k] = v

    try:
        proc = subprocess.run(argv, check=False, env=env)
    except OSError as e:
        _eprint(f"error: could not run {argv[0]!r}: {e}")
        return EXIT_COMMAND_NOT_FOUND
    return int(proc.returncode)


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_OR_FORMAT

    if args.command == "parse":
        return cmd_parse(args)
    if args.command == "check":
        return cmd_check(args)
    if args.command == "run":
        return cmd_run(args)

    return EXIT_CONFIG_OR_FORMAT


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
