"""
Command line entry point: `git-file-history <file_path>`.

Checks that the working directory is inside a git repository, loads the
file's history once and hands it to the Textual app. Startup failures are
reported on stderr with exit status 1.
"""
from __future__ import annotations

import argparse
import functools
import logging
import os
import sys
import traceback
from typing import Optional, Sequence

import pygit2

from . import __version__
from .app import FileHistoryApp
from .browser import Browser
from .config import DIFF_PREAMBLE_LINES, LOG_ENV_VAR, settings_from_args
from .diff import load_diff
from .errors import FileHistoryError, ProcessFailure, UsageError
from .history import load_history

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """argparse parser that reports bad invocations as `UsageError` instead of exiting 2."""

    def error(self, message: str) -> None:
        raise UsageError(message)


def build_parser() -> _ArgumentParser:
    parser = _ArgumentParser(
        prog="git-file-history",
        description="Browse the commits that touched a file and view their diffs.",
    )
    parser.add_argument("path", help="File to show the history of, relative to the current directory")
    parser.add_argument(
        "--follow",
        action="store_true",
        help="Continue listing history across renames",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        help="Show plain `git show` output instead of running the diff formatter",
    )
    parser.add_argument(
        "--formatter",
        default=None,
        help="Diff formatter command reading the diff on stdin (default: git-split-diffs --color)",
    )
    parser.add_argument(
        "--trim-lines",
        type=int,
        default=DIFF_PREAMBLE_LINES,
        help="Lines dropped after the formatter's first horizontal rule (default: %(default)s)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help=f"Write a debug log to this file (also ${LOG_ENV_VAR})",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Write a debug log to git-file-history.log",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    if args.trim_lines < 0:
        raise UsageError("--trim-lines must not be negative")
    return args


def configure_logging(log_file: Optional[str]) -> None:
    """Send debug logging to `log_file`; the terminal belongs to the UI."""
    if not log_file:
        return
    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def find_repository(cwd: str) -> str:
    """Return the git directory containing `cwd` or raise `ProcessFailure`."""
    try:
        gitdir = pygit2.discover_repository(cwd)
    except (KeyError, pygit2.GitError) as e:
        logger.debug(f"find_repository: discover_repository failed: {e}")
        logger.debug(traceback.format_exc())
        gitdir = None
    if not gitdir:
        raise ProcessFailure(f"not a git repository (or any parent up to /): {cwd}")
    return gitdir


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        args = parse_args(sys.argv[1:] if argv is None else argv)
    except UsageError as e:
        parser = build_parser()
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return 1

    settings = settings_from_args(args)
    configure_logging(settings.log_file)
    cwd = os.getcwd()

    try:
        gitdir = find_repository(cwd)
        logger.debug(f"main: repository {gitdir}, path {args.path}")
        commits = load_history(args.path, cwd=cwd, follow=settings.follow)
    except FileHistoryError as e:
        logger.debug(f"main: startup failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not commits:
        logger.debug(f"main: no history for {args.path}, starting with an empty list")

    loader = functools.partial(load_diff, settings=settings, cwd=cwd)
    browser = Browser(commits, args.path, loader, settings)
    FileHistoryApp(browser, settings).run()
    return 0
