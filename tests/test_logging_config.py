"""
Tests for application logging setup.
"""

import logging
from unittest.mock import MagicMock, patch

from backend.logging_config import LOG_FORMAT, setup_logging


def _run_setup(handlers, **kwargs):
    root = MagicMock()
    root.handlers = handlers
    with (
        patch("backend.logging_config.logging.getLogger", return_value=root),
        patch("backend.logging_config.logging.basicConfig") as basic_config,
    ):
        setup_logging(**kwargs)
    return basic_config


def test_setup_logging_configures_root_once():
    """Existing handlers mean logging is already configured."""
    assert _run_setup([logging.NullHandler()]).call_count == 0
    assert _run_setup([]).call_count == 1


def test_setup_logging_uses_format_and_level():
    basic_config = _run_setup([], level=logging.WARNING)

    kwargs = basic_config.call_args.kwargs
    assert kwargs["level"] == logging.WARNING
    assert kwargs["format"] == LOG_FORMAT


def test_setup_logging_reads_env_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert _run_setup([]).call_args.kwargs["level"] == logging.DEBUG


def test_setup_logging_invalid_env_level(monkeypatch):
    """Unknown level names fall back to INFO."""
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert _run_setup([]).call_args.kwargs["level"] == logging.INFO
