"""Command-line entrypoint."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TextIO

from shisho.config import CliOverrides, ShishoConfig, load_effective_config
from shisho.manifest import (
    SYMLINK_POLICIES,
    FormatError,
    MissingMarkerError,
    NotTrackedError,
    ShishoError,
)
from shisho.operations import (
    STATUS_ABORTED,
    STATUS_ALREADY_INITIALIZED,
    STATUS_IDENTITY_MISMATCH,
    STATUS_INITIALIZED,
    STATUS_INVALID,
    STATUS_MANIFEST_MISMATCH,
    STATUS_MATCH,
    STATUS_MISMATCH,
    STATUS_MISSING_MARKER,
    STATUS_NOT_TRACKED,
    STATUS_OK,
    STATUS_UPDATED,
    STATUS_VERSION_MISMATCH,
    OperationResult,
    check_directory,
    compare_directories,
    init_directory,
    status_directory,
    update_directory,
)

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_NOT_TRACKED = 3
EXIT_ALREADY_INITIALIZED = 4
EXIT_ABORTED = 5
EXIT_IDENTITY_MISMATCH = 6
EXIT_VERSION_MISMATCH = 7
EXIT_MANIFEST_MISMATCH = 8
EXIT_MISSING_MARKER = 9
EXIT_FORMAT_ERROR = 10
EXIT_IO_ERROR = 11
EXIT_INVALID_INPUT = 12

STATUS_EXIT_CODES: dict[str, int] = {
    STATUS_INITIALIZED: EXIT_OK,
    STATUS_MATCH: EXIT_OK,
    STATUS_UPDATED: EXIT_OK,
    STATUS_OK: EXIT_OK,
    STATUS_MISMATCH: EXIT_MISMATCH,
    STATUS_NOT_TRACKED: EXIT_NOT_TRACKED,
    STATUS_INVALID: EXIT_NOT_TRACKED,
    STATUS_ALREADY_INITIALIZED: EXIT_ALREADY_INITIALIZED,
    STATUS_ABORTED: EXIT_ABORTED,
    STATUS_IDENTITY_MISMATCH: EXIT_IDENTITY_MISMATCH,
    STATUS_VERSION_MISMATCH: EXIT_VERSION_MISMATCH,
    STATUS_MANIFEST_MISMATCH: EXIT_MANIFEST_MISMATCH,
    STATUS_MISSING_MARKER: EXIT_MISSING_MARKER,
}

MAX_DELTA_LINES = 20


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="shisho",
        description="Track content fingerprints and version lineage of a directory.",
    )
    parser.add_argument("--config", required=False, default=None)
    parser.add_argument("--workers", type=int, required=False, default=None)
    parser.add_argument("--symlinks", choices=SYMLINK_POLICIES, required=False, default=None)
    parser.add_argument("--no-audit", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    init_parser = commands.add_parser(
        "init",
        help="Initialize a directory with an identity",
        description=(
            "Move every entry of the directory, including any shisho.toml, into data/ "
            "and record version 0. Pass --config to keep using a config file from elsewhere."
        ),
    )
    init_parser.add_argument("identity")
    init_parser.add_argument("directory", nargs="?", default=".")
    init_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    check_parser = commands.add_parser("check", help="Check files against the stored manifest")
    check_parser.add_argument("directory", nargs="?", default=".")

    update_parser = commands.add_parser("update", help="Record the current files as a new version")
    update_parser.add_argument("directory", nargs="?", default=".")

    compare_parser = commands.add_parser("compare", help="Compare two tracked directories")
    compare_parser.add_argument("dir1")
    compare_parser.add_argument("dir2")

    status_parser = commands.add_parser("status", help="Show identity, version and history")
    status_parser.add_argument("directory", nargs="?", default=".")
    status_parser.add_argument("--history", type=int, default=5)
    status_parser.add_argument(
        "--since", default=None, help="Only show events at or after this UTC timestamp"
    )
    return parser


def prompt_confirm(preview: list[str], in_stream: TextIO, out_stream: TextIO) -> bool:
    """Show the move preview and read a yes/no answer."""
    out_stream.write("About to move these files:\n")
    for line in preview:
        out_stream.write(f"{line}\n")
    out_stream.write("Continue? [y/N] ")
    out_stream.flush()
    answer = in_stream.readline()
    return answer.strip().lower() in {"y", "yes"}


def run(
    argv: list[str] | None,
    in_stream: TextIO,
    out_stream: TextIO,
    err_stream: TextIO,
) -> int:
    """Parse arguments, run one command and return its exit code."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        config = load_effective_config(
            config_path=Path(args.config) if args.config is not None else None,
            overrides=CliOverrides(
                workers=args.workers,
                symlinks=args.symlinks,
                audit_enabled=False if args.no_audit else None,
            ),
        )
        result = _dispatch(args, config, in_stream, out_stream)
    except NotTrackedError as error:
        print(str(error), file=err_stream)
        return EXIT_NOT_TRACKED
    except MissingMarkerError as error:
        print(str(error), file=err_stream)
        return EXIT_MISSING_MARKER
    except FormatError as error:
        print(f"Malformed metadata: {error}", file=err_stream)
        return EXIT_FORMAT_ERROR
    except ShishoError as error:
        print(str(error), file=err_stream)
        return EXIT_FORMAT_ERROR
    except OSError as error:
        print(f"I/O error: {error}", file=err_stream)
        return EXIT_IO_ERROR
    except ValueError as error:
        print(f"Invalid input: {error}", file=err_stream)
        return EXIT_INVALID_INPUT

    _render(result, out_stream if result.ok else err_stream)
    return STATUS_EXIT_CODES[result.status]


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the shisho command."""
    return run(argv, in_stream=sys.stdin, out_stream=sys.stdout, err_stream=sys.stderr)


def _dispatch(
    args: argparse.Namespace,
    config: ShishoConfig,
    in_stream: TextIO,
    out_stream: TextIO,
) -> OperationResult:
    if args.command == "init":
        print(f"Initializing directory: {args.directory} with ID: {args.identity}", file=out_stream)

        def confirm(preview: list[str]) -> bool:
            if args.yes:
                return True
            return prompt_confirm(preview, in_stream=in_stream, out_stream=out_stream)

        return init_directory(
            Path(args.directory), args.identity, confirm=confirm, config=config
        )
    if args.command == "check":
        print(f"Checking directory: {args.directory}", file=out_stream)
        return check_directory(Path(args.directory), config=config)
    if args.command == "update":
        print(f"Updating directory: {args.directory}", file=out_stream)
        return update_directory(Path(args.directory), config=config)
    if args.command == "compare":
        print(f"Comparing directories: {args.dir1} and {args.dir2}", file=out_stream)
        return compare_directories(Path(args.dir1), Path(args.dir2))
    if args.history < 0:
        raise ValueError("--history must be >= 0")
    return status_directory(Path(args.directory), history=args.history, since=args.since)


def _render(result: OperationResult, stream: TextIO) -> None:
    print(result.message, file=stream)
    delta = result.details.get("delta")
    if isinstance(delta, dict):
        lines: list[str] = []
        for marker, key in (("+", "added"), ("~", "changed"), ("-", "removed")):
            lines.extend(f"  {marker} {path}" for path in delta.get(key, ()))
        for line in lines[:MAX_DELTA_LINES]:
            print(line, file=stream)
        if len(lines) > MAX_DELTA_LINES:
            print(f"  ...and {len(lines) - MAX_DELTA_LINES} more", file=stream)
    history = result.details.get("history")
    if isinstance(history, list):
        for event in history:
            print(
                f"  {event.timestamp} {event.operation} version={event.metadata.get('version')}",
                file=stream,
            )
