#!/usr/bin/env python3
"""envcraft command-line interface.

Usage:
    envcraft [-C DIR] [-v] <command> [args]

Environment variables:
    ENVCRAFT_STORE_DIR    Store directory inside the working directory (default: .envs)
    ENVCRAFT_LOG_LEVEL    Console log level (default: WARNING)
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from . import __version__
from .errors import EnvcraftError, UsageError
from .lifecycle import EnvironmentManager
from .settings import Settings
from .utils.audit_log import setup_audit_logging
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

USAGE = """\
usage: envcraft [-C DIR] [-v] <command> [args]

commands:
    help                 show this message
    list                 list environments (* marks the active one)
    new <name>           create an environment and switch to it
    switch <name>        switch to an existing environment
    delete <name>        delete an inactive environment
    rename <newname>     rename the active environment
    diff                 show unsaved changes
    status               summarize unsaved changes
    save [message]       save changes to the active environment
    revert               discard unsaved changes
    log [-n N]           show saved history of the active environment
    clear                remove all environments, keeping plain files on request
"""


class EnvcraftArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports problems as UsageError instead of exiting."""

    def error(self, message: str):
        raise UsageError(message)


def build_parser() -> EnvcraftArgumentParser:
    parser = EnvcraftArgumentParser(
        prog="envcraft",
        usage="envcraft [-C DIR] [-v] <command> [args]",
        add_help=False,
    )
    parser.add_argument(
        "-C", "--directory",
        type=Path,
        default=None,
        help="Working directory (default: current directory)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("--version", action="version", version=f"envcraft {__version__}")
    parser.add_argument("command", nargs="?")
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def _no_args(run: Callable[[EnvironmentManager], object]):
    def handler(manager: EnvironmentManager, args: list[str]) -> None:
        if args:
            raise UsageError(f"unexpected arguments: {' '.join(args)}")
        run(manager)
    return handler


def _one_name(run: Callable[[EnvironmentManager, Optional[str]], object]):
    def handler(manager: EnvironmentManager, args: list[str]) -> None:
        if len(args) > 1:
            raise UsageError(f"unexpected arguments: {' '.join(args[1:])}")
        run(manager, args[0] if args else None)
    return handler


def _save(manager: EnvironmentManager, args: list[str]) -> None:
    manager.save(" ".join(args) or None)


def _log(manager: EnvironmentManager, args: list[str]) -> None:
    parser = EnvcraftArgumentParser(prog="envcraft log", add_help=False)
    parser.add_argument("-n", "--limit", type=int, default=20)
    ns = parser.parse_args(args)
    if ns.limit < 1:
        raise UsageError("--limit must be positive")
    manager.log(ns.limit)


COMMANDS: dict[str, Callable[[EnvironmentManager, list[str]], None]] = {
    "list": _no_args(EnvironmentManager.list_environments),
    "clear": _no_args(EnvironmentManager.clear),
    "new": _one_name(EnvironmentManager.new),
    "switch": _one_name(EnvironmentManager.switch),
    "delete": _one_name(EnvironmentManager.delete),
    "rename": _one_name(EnvironmentManager.rename),
    "diff": _no_args(EnvironmentManager.diff),
    "status": _no_args(EnvironmentManager.status),
    "save": _save,
    "revert": _no_args(EnvironmentManager.revert),
    "log": _log,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the envcraft CLI."""
    parser = build_parser()
    try:
        ns = parser.parse_args(argv)
    except UsageError as e:
        print(f"envcraft: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr, end="")
        return 1

    if ns.help or ns.command == "help":
        print(USAGE, end="")
        return 0

    command = ns.command
    handler = COMMANDS.get(command) if command else None
    if handler is None:
        if command:
            print(f"envcraft: unknown command '{command}'", file=sys.stderr)
        print(USAGE, file=sys.stderr, end="")
        return 1

    workdir = (ns.directory or Path.cwd()).resolve()
    try:
        settings = Settings.load(workdir)
    except EnvcraftError as e:
        print(f"envcraft {command}: {e}", file=sys.stderr)
        return e.exit_code
    setup_logging(settings.log_file, "DEBUG" if ns.verbose else settings.log_level)
    setup_audit_logging(settings.audit_log)
    logger.debug(f"Running '{command}' in {workdir} with {settings.to_dict()}")

    manager = EnvironmentManager(workdir, settings)
    try:
        handler(manager, ns.args)
    except UsageError as e:
        print(f"envcraft {command}: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr, end="")
        return e.exit_code
    except EnvcraftError as e:
        logger.debug(f"{command} failed", exc_info=True)
        print(f"envcraft {command}: {e}", file=sys.stderr)
        return e.exit_code
    except OSError as e:
        logger.exception(f"{command} failed with filesystem error: {e}")
        print(f"envcraft {command}: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
