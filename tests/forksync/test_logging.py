"""Tests for logging configuration."""

from __future__ import annotations

import logging

import pytest

from forksync.core.logging import resolve_format, resolve_level, setup_logging


class TestResolve:
    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("FORKSYNC_LOG_LEVEL", "debug")
        assert resolve_level() == "DEBUG"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("FORKSYNC_LOG_LEVEL", "debug")
        assert resolve_level("error") == "ERROR"

    def test_unknown_level_defaults_to_info(self, monkeypatch):
        monkeypatch.delenv("FORKSYNC_LOG_LEVEL", raising=False)
        assert resolve_level("chatty") == "INFO"

    @pytest.mark.parametrize(
        "value, expected", [("JSON", "json"), ("xml", "console"), (None, "console")]
    )
    def test_format(self, monkeypatch, value, expected):
        monkeypatch.delenv("FORKSYNC_LOG_FORMAT", raising=False)
        assert resolve_format(value) == expected


class TestSetupLogging:
    def test_levels_applied(self):
        setup_logging("warning", "json")

        assert logging.getLogger("forksync").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger().level == logging.WARNING
