"""
Immutable configuration shared by the layout engine, diff source and UI.

A single `Settings` value is built at process start and handed to every
component that needs it. Nothing here is mutated afterwards.
"""
from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from typing import Optional

# Number of header lines git-split-diffs prints after its first horizontal
# rule (file name, blank line, column headings). They are dropped together
# with the rule itself.
DIFF_PREAMBLE_LINES = 3

# The box-drawing character used by git-split-diffs for its horizontal rules.
RULE_MARKER = "─"

DEFAULT_FORMATTER = ("git-split-diffs", "--color")

LOG_ENV_VAR = "GIT_FILE_HISTORY_LOG"
DEFAULT_LOG_FILE = "git-file-history.log"


@dataclass(frozen=True)
class Chrome:
    """Fixed geometry and styling of the screen decorations."""

    header_height: int = 1
    footer_height: int = 1
    # title line + description line per commit
    item_height: int = 2
    wheel_lines: int = 3

    title_style: str = "bold"
    rule_style: str = "bright_black"
    selected_style: str = "bold magenta"
    description_style: str = "dim"
    filter_style: str = "bold cyan"
    error_style: str = "bold red"


DEFAULT_CHROME = Chrome()


@dataclass(frozen=True)
class Settings:
    formatter: Optional[tuple[str, ...]] = DEFAULT_FORMATTER
    trim_lines: int = DIFF_PREAMBLE_LINES
    rule_marker: str = RULE_MARKER
    follow: bool = False
    log_file: Optional[str] = None
    chrome: Chrome = field(default_factory=Chrome)

    @property
    def plain(self) -> bool:
        """True when diffs are shown without the external formatter."""
        return not self.formatter


def parse_formatter(command: Optional[str]) -> Optional[tuple[str, ...]]:
    """Split a formatter command line into an argument vector.

    The command is never handed to a shell; quoting follows POSIX rules.
    An empty command (or "none") disables the formatter.
    """
    if command is None:
        return DEFAULT_FORMATTER
    argv = tuple(shlex.split(command))
    if not argv or argv == ("none",):
        return None
    return argv


def settings_from_args(args) -> Settings:
    """Build the process-wide `Settings` from parsed command line arguments."""
    formatter = None if args.plain else parse_formatter(args.formatter)
    log_file = args.log_file or os.environ.get(LOG_ENV_VAR) or None
    if log_file is None and args.debug:
        log_file = DEFAULT_LOG_FILE
    return Settings(
        formatter=formatter,
        trim_lines=args.trim_lines,
        follow=args.follow,
        log_file=log_file,
    )
