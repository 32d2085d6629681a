"""
Tests for logging configuration.
"""

import logging

import pytest

from src.core.logger import level_from_env, setup_logging


class TestLevelFromEnv:
    @pytest.mark.parametrize(
        "value, expected",
        [("INFO", logging.INFO), ("warning", logging.WARNING), ("ERROR", logging.ERROR)],
    )
    def test_known_levels(self, monkeypatch, value, expected):
        monkeypatch.setenv("LOG_LEVEL", value)

        assert level_from_env() == expected

    def test_unset_uses_default(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        assert level_from_env() == logging.DEBUG
        assert level_from_env(default=logging.INFO) == logging.INFO

    def test_unknown_uses_default(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        assert level_from_env(default=logging.WARNING) == logging.WARNING


def test_setup_logging_is_repeatable():
    setup_logging(level=logging.INFO)
    setup_logging(level=logging.DEBUG)
