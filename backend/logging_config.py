"""
Logging configuration for the application.

Design decisions:
- Basic format: Timestamp | Level | Logger | Message
- stdout output: Compatible with container logging (Docker, K8s)
- INFO level default, LOG_LEVEL env var to override
- Idempotent setup: Safe to call from every Streamlit page

PRIVACY:
- Application logs must NOT contain symptom descriptions or LLM output
- Log request ids, lengths and error codes only
- Use audit_log.py for structured audit events

Usage:
    from backend.logging_config import setup_logging
    setup_logging()  # Call once at startup
"""

from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: int | None = None) -> None:
    """
    Configure the root logger.
    Idempotent: won't add duplicate handlers if already configured.

    Without an explicit level, LOG_LEVEL (e.g. "DEBUG") is used, else INFO.
    """
    if level is None:
        level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if root.handlers:
        return

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
