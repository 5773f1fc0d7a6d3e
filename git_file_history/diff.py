"""
Diff of a single commit restricted to one file.

The pipeline has three stages: `git show <commit> -- <path>`, the external
colorizing formatter fed with git's output on stdin, and a line trim that
removes the formatter's preamble. Stages are wired together in-process with
argument vectors; no shell is involved.
"""
from __future__ import annotations

import logging
import subprocess
import traceback
from typing import Optional, Sequence

from .config import DIFF_PREAMBLE_LINES, RULE_MARKER, Settings
from .errors import ProcessFailure

logger = logging.getLogger(__name__)


def build_show_command(commit_id: str, path: str) -> list[str]:
    return ["git", "show", commit_id, "--", path]


def trim_preamble(text: str, marker: str = RULE_MARKER, extra_lines: int = DIFF_PREAMBLE_LINES) -> str:
    """Drop everything through the first line containing `marker`, plus `extra_lines` more.

    Output without the marker is returned untouched.
    """
    lines = text.splitlines(keepends=True)
    for idx, line in enumerate(lines):
        if marker in line:
            return "".join(lines[idx + 1 + max(0, extra_lines):])
    return text


def _run_stage(cmd: Sequence[str], stdin: Optional[str] = None, cwd: Optional[str] = None) -> str:
    """Run one pipeline stage and return its stdout, raising `ProcessFailure` on any failure."""
    logger.debug(f"diff stage: running {list(cmd)}")
    try:
        proc = subprocess.run(
            list(cmd),
            input=stdin,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        logger.debug(f"diff stage: could not start {cmd[0]}: {e}")
        logger.debug(traceback.format_exc())
        raise ProcessFailure(f"could not run {cmd[0]}: {e}", command=cmd) from e
    if proc.returncode != 0:
        logger.debug(f"diff stage: {cmd[0]} exited {proc.returncode}: {proc.stderr.strip()}")
        raise ProcessFailure(
            f"{cmd[0]} exited with status {proc.returncode}",
            command=cmd,
            returncode=proc.returncode,
            stderr=proc.stderr,
        )
    return proc.stdout


def load_diff(commit_id: str, path: str, *, settings: Optional[Settings] = None, cwd: Optional[str] = None) -> str:
    """Return the formatted diff `commit_id` made to `path`.

    With no formatter configured the raw `git show` output is returned.
    """
    settings = settings or Settings()
    show_cmd = build_show_command(commit_id, path)
    raw = _run_stage(show_cmd, cwd=cwd)
    if not raw.strip():
        raise ProcessFailure(f"git show produced no output for {commit_id} -- {path}", command=show_cmd)

    if settings.plain:
        return raw

    formatted = _run_stage(settings.formatter, stdin=raw, cwd=cwd)
    trimmed = trim_preamble(formatted, settings.rule_marker, settings.trim_lines)
    logger.debug(f"load_diff: {commit_id} -> {len(trimmed.splitlines())} lines")
    return trimmed
