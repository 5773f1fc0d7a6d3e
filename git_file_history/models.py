from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Mode(Enum):
    """Top-level display state of the browser."""

    LIST = "list"
    DIFF = "diff"


@dataclass(frozen=True)
class CommitSummary:
    """One entry of a file's revision history, as reported by `git log`."""

    id: str
    subject: str
    author: str
    date: str

    @property
    def title(self) -> str:
        if not self.subject:
            return self.id
        return f"{self.id} {self.subject}"

    @property
    def description(self) -> str:
        return f"{self.author}, {self.date}"

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match against the subject."""
        return needle.lower() in self.subject.lower()
