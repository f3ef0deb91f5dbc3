# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for clipinfo.logging_config: structlog + stdlib bridge."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from clipinfo.logging_config import LOG_LEVEL_ENV, configure, resolve_level

pytestmark = pytest.mark.usefixtures("reset_logging")


class TestConsoleRenderer:
    def test_single_stderr_handler(self):
        configure(json_output=False)
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stderr

    def test_human_readable(self, capsys):
        configure(json_output=False, level="INFO")
        logging.getLogger("test.console").info("hello world")
        err = capsys.readouterr().err
        assert "hello world" in err
        assert not err.strip().startswith("{")

    def test_stdout_stays_clean(self, capsys):
        configure(json_output=False, level="DEBUG")
        logging.getLogger("test.stdout").warning("only stderr")
        assert capsys.readouterr().out == ""


class TestJSONRenderer:
    def test_valid_json(self, capsys):
        configure(json_output=True, level="INFO")
        logging.getLogger("test.json").info("json test")
        line = capsys.readouterr().err.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["event"] == "json test"
        assert data["level"] == "info"
        assert data["logger"] == "test.json"
        assert "timestamp" in data


class TestLevels:
    def test_default_level_hides_info(self, capsys):
        configure()
        logging.getLogger("test.quiet").info("hidden")
        assert "hidden" not in capsys.readouterr().err

    def test_unknown_level_falls_back(self):
        configure(level="LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_debug_level(self):
        configure(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_resolve_level_verbose(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, "ERROR")
        assert resolve_level(verbose=True) == "DEBUG"

    def test_resolve_level_env(self, monkeypatch):
        monkeypatch.setenv(LOG_LEVEL_ENV, " info ")
        assert resolve_level() == "INFO"

    def test_resolve_level_default(self, monkeypatch):
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
        assert resolve_level(default="ERROR") == "ERROR"
