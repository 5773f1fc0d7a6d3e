"""Shared fixtures for the git-file-history test suite."""
from __future__ import annotations

import shutil
import subprocess

import pytest

from git_file_history.errors import ProcessFailure
from git_file_history.models import CommitSummary

SCENARIO_LOG = "abc123 Fix bug||Alice, 2 days ago\ndef456 Initial||Bob, 1 week ago"


def make_commits(n: int) -> tuple[CommitSummary, ...]:
    return tuple(
        CommitSummary(id=f"c{i:05x}", subject=f"change number {i}", author="Dev", date=f"{i} days ago")
        for i in range(n)
    )


class FakeDiffs:
    """Stand-in for the diff source: records calls, fails for chosen commits."""

    def __init__(self, diffs=None, fail=()):
        self.diffs = dict(diffs or {})
        self.fail = set(fail)
        self.calls: list[tuple[str, str]] = []

    def __call__(self, commit_id: str, path: str) -> str:
        self.calls.append((commit_id, path))
        if commit_id in self.fail:
            raise ProcessFailure(
                "git exited with status 128",
                command=["git", "show", commit_id, "--", path],
                returncode=128,
                stderr=f"fatal: bad object {commit_id}",
            )
        return self.diffs.get(commit_id, "\n".join(f"{commit_id} line {i}" for i in range(100)))


@pytest.fixture
def commits():
    return (
        CommitSummary(id="abc123", subject="Fix bug", author="Alice", date="2 days ago"),
        CommitSummary(id="def456", subject="Initial", author="Bob", date="1 week ago"),
    )


@pytest.fixture
def fake_diffs():
    return FakeDiffs()


def _git(cwd, *args):
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)


@pytest.fixture
def git_repo(tmp_path):
    """A throwaway repository where `notes.txt` has two commits and `other.txt` one."""
    if shutil.which("git") is None:
        pytest.skip("git is required for repository tests")
    _git(tmp_path, "init", "-q")
    _git(tmp_path, "config", "user.email", "tests@example.com")
    _git(tmp_path, "config", "user.name", "Test User")
    _git(tmp_path, "config", "commit.gpgsign", "false")

    (tmp_path / "notes.txt").write_text("first line\n", encoding="utf-8")
    _git(tmp_path, "add", "notes.txt")
    _git(tmp_path, "commit", "-q", "-m", "Add notes")

    (tmp_path / "other.txt").write_text("unrelated\n", encoding="utf-8")
    _git(tmp_path, "add", "other.txt")
    _git(tmp_path, "commit", "-q", "-m", "Add other file")

    (tmp_path / "notes.txt").write_text("first line\nsecond line\n", encoding="utf-8")
    _git(tmp_path, "commit", "-q", "-am", "Extend notes")
    return tmp_path
