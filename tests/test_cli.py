from __future__ import annotations

import pytest

from git_file_history import cli
from git_file_history.app import FileHistoryApp
from git_file_history.config import DEFAULT_FORMATTER, DIFF_PREAMBLE_LINES
from git_file_history.errors import ProcessFailure, UsageError
from git_file_history.history import parse_history

from tests.conftest import SCENARIO_LOG


@pytest.fixture
def in_repo(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli.pygit2, "discover_repository", lambda path: str(tmp_path / ".git"))
    return tmp_path


@pytest.fixture
def runs(monkeypatch):
    """Record app launches instead of taking over the terminal."""
    launched = []

    def fake_run(self, *args, **kwargs):
        launched.append(self)

    monkeypatch.setattr(FileHistoryApp, "run", fake_run)
    return launched


@pytest.mark.parametrize("argv", [[], ["a.txt", "b.txt"]])
def test_wrong_argument_count_exits_1_with_usage(argv, capsys):
    assert cli.main(argv) == 1
    err = capsys.readouterr().err
    assert "usage: git-file-history" in err


def test_parse_args_defaults():
    args = cli.parse_args(["notes.txt"])
    assert args.path == "notes.txt"
    assert args.trim_lines == DIFF_PREAMBLE_LINES
    assert not args.follow and not args.plain and not args.debug


def test_negative_trim_is_a_usage_error():
    with pytest.raises(UsageError):
        cli.parse_args(["--trim-lines", "-1", "notes.txt"])


def test_outside_repository_exits_1(monkeypatch, tmp_path, capsys, runs):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli.pygit2, "discover_repository", lambda path: None)
    assert cli.main(["notes.txt"]) == 1
    assert "not a git repository" in capsys.readouterr().err
    assert runs == []


def test_history_failure_exits_1(monkeypatch, in_repo, capsys, runs):
    def failing(path, **kwargs):
        raise ProcessFailure("git log exited with status 128", returncode=128, stderr="fatal: bad path")

    monkeypatch.setattr(cli, "load_history", failing)
    assert cli.main(["notes.txt"]) == 1
    assert capsys.readouterr().err.startswith("Error: git log exited with status 128")
    assert runs == []


def test_malformed_history_exits_1(monkeypatch, in_repo, capsys, runs):
    def fake_load(path, **kwargs):
        return parse_history("no delimiter on this line")

    monkeypatch.setattr(cli, "load_history", fake_load)
    assert cli.main(["notes.txt"]) == 1
    assert "missing" in capsys.readouterr().err
    assert runs == []


def test_empty_history_starts_app_with_no_commits(monkeypatch, in_repo, capsys, runs):
    monkeypatch.setattr(cli, "load_history", lambda path, **kwargs: ())
    assert cli.main(["notes.txt"]) == 0
    assert capsys.readouterr().err == ""
    (app,) = runs
    assert app.browser.commits == ()
    assert app.browser.selected() is None


def test_successful_start_runs_app(monkeypatch, in_repo, runs):
    seen = {}

    def fake_load(path, **kwargs):
        seen.update(kwargs, path=path)
        return parse_history(SCENARIO_LOG)

    monkeypatch.setattr(cli, "load_history", fake_load)
    assert cli.main(["--follow", "--plain", "notes.txt"]) == 0
    assert seen["path"] == "notes.txt"
    assert seen["follow"] is True

    (app,) = runs
    assert [c.title for c in app.browser.commits] == ["abc123 Fix bug", "def456 Initial"]
    assert app.browser.path == "notes.txt"
    assert app.settings.plain


def test_successful_start_against_real_repository(monkeypatch, git_repo, runs):
    monkeypatch.chdir(git_repo)
    assert cli.main(["notes.txt"]) == 0
    (app,) = runs
    assert [c.subject for c in app.browser.commits] == ["Extend notes", "Add notes"]
    assert app.settings.formatter == DEFAULT_FORMATTER
