"""Error types raised by the history browser."""
from __future__ import annotations

from typing import Optional, Sequence


class FileHistoryError(RuntimeError):
    pass


class UsageError(FileHistoryError):
    """Wrong command line invocation; fatal before any UI is drawn."""


class ProcessFailure(FileHistoryError):
    """An external tool could not be started or exited with a nonzero status.

    `command` is the argument vector that failed, `returncode` is None when
    the executable could not be started at all.
    """

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = tuple(command or ())
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        stderr = self.stderr.strip()
        if stderr and stderr not in message:
            return f"{message}: {stderr}"
        return message


class MalformedOutput(ProcessFailure):
    """History output contained a line that does not match the record format."""
