from __future__ import annotations

import dataclasses

import pytest

from git_file_history import cli
from git_file_history.config import (
    DEFAULT_FORMATTER,
    DEFAULT_LOG_FILE,
    LOG_ENV_VAR,
    Settings,
    parse_formatter,
    settings_from_args,
)


def test_parse_formatter_default_and_disabled():
    assert parse_formatter(None) == DEFAULT_FORMATTER
    assert parse_formatter("") is None
    assert parse_formatter("none") is None


def test_parse_formatter_splits_without_a_shell():
    assert parse_formatter("delta --color-only --paging 'never'") == ("delta", "--color-only", "--paging", "never")
    assert parse_formatter("fmt; rm -rf /") == ("fmt;", "rm", "-rf", "/")


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.trim_lines = 9
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.chrome.header_height = 4


def test_settings_from_args(monkeypatch):
    monkeypatch.delenv(LOG_ENV_VAR, raising=False)
    settings = settings_from_args(cli.parse_args(["--formatter", "delta", "--trim-lines", "1", "x"]))
    assert settings.formatter == ("delta",)
    assert settings.trim_lines == 1
    assert settings.log_file is None
    assert not settings.plain


def test_plain_flag_disables_formatter(monkeypatch):
    monkeypatch.delenv(LOG_ENV_VAR, raising=False)
    settings = settings_from_args(cli.parse_args(["--plain", "--formatter", "delta", "x"]))
    assert settings.formatter is None
    assert settings.plain


def test_log_file_sources(monkeypatch):
    monkeypatch.delenv(LOG_ENV_VAR, raising=False)
    assert settings_from_args(cli.parse_args(["--debug", "x"])).log_file == DEFAULT_LOG_FILE
    assert settings_from_args(cli.parse_args(["--log-file", "out.log", "--debug", "x"])).log_file == "out.log"
    monkeypatch.setenv(LOG_ENV_VAR, "env.log")
    assert settings_from_args(cli.parse_args(["x"])).log_file == "env.log"
