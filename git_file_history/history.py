"""
Commit history of a single file.

Runs `git log` restricted to one path and turns its line-oriented output
into `CommitSummary` records, preserving git's reverse-chronological order.
"""
from __future__ import annotations

import logging
import re
import subprocess
import traceback
from typing import Optional

from .errors import MalformedOutput, ProcessFailure
from .models import CommitSummary

logger = logging.getLogger(__name__)

# Separates "<id> <subject>" from "<author>, <date>" on each log line.
FIELD_SEP = "||"
AUTHOR_DATE_SEP = ", "

LOG_FORMAT = f"--pretty=format:%h %s{FIELD_SEP}%an{AUTHOR_DATE_SEP}%ar"

# `%ar` output: "5 days ago", "3 years, 9 months ago" or "in the future".
# The date is anchored at the end so commas in it never reach the author.
RELATIVE_DATE_RE = re.compile(r"^(?P<author>.*?), (?P<date>\d+ \w+(?:, \d+ \w+)? ago|in the future)$")


def build_log_command(path: str, follow: bool = False) -> list[str]:
    cmd = ["git", "log", LOG_FORMAT]
    if follow:
        cmd.append("--follow")
    cmd.extend(["--", path])
    return cmd


def parse_history_line(line: str, lineno: int = 1) -> CommitSummary:
    """Parse one `<id> <subject>||<author>, <date>` line.

    Raises `MalformedOutput` rather than returning a partial record.
    """
    head, sep, tail = line.rpartition(FIELD_SEP)
    if not sep:
        raise MalformedOutput(f"line {lineno}: missing {FIELD_SEP!r} delimiter: {line!r}")
    commit_id, _, subject = head.partition(" ")
    if not commit_id:
        raise MalformedOutput(f"line {lineno}: missing commit id: {line!r}")
    match = RELATIVE_DATE_RE.match(tail)
    if match:
        author, date = match.group("author"), match.group("date")
    else:
        # Localized dates: fall back to the last separator.
        author, sep, date = tail.rpartition(AUTHOR_DATE_SEP)
        if not sep:
            raise MalformedOutput(f"line {lineno}: missing author/date separator: {line!r}")
    return CommitSummary(id=commit_id, subject=subject, author=author, date=date)


def parse_history(raw: str) -> tuple[CommitSummary, ...]:
    """Parse the complete output of the history query.

    Blank lines are ignored; empty output means the file has no history.
    """
    commits = []
    for lineno, line in enumerate(raw.splitlines(), start=1):
        if not line.strip():
            continue
        commits.append(parse_history_line(line, lineno))
    return tuple(commits)


def load_history(path: str, *, cwd: Optional[str] = None, follow: bool = False) -> tuple[CommitSummary, ...]:
    """Return the commits that touched `path`, newest first.

    A single failed invocation raises `ProcessFailure` immediately.
    """
    cmd = build_log_command(path, follow=follow)
    logger.debug(f"load_history: running {cmd} in {cwd or '.'}")
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        logger.debug(f"load_history: could not start git: {e}")
        logger.debug(traceback.format_exc())
        raise ProcessFailure(f"could not run git: {e}", command=cmd) from e

    if proc.returncode != 0:
        logger.debug(f"load_history: git exited {proc.returncode}: {proc.stderr.strip()}")
        raise ProcessFailure(
            f"git log exited with status {proc.returncode}",
            command=cmd,
            returncode=proc.returncode,
            stderr=proc.stderr,
        )

    commits = parse_history(proc.stdout)
    logger.debug(f"load_history: {len(commits)} commits for {path}")
    return commits
