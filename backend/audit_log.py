"""
Audit logging with strict allowlist policy.

CRITICAL: health data never reaches the audit trail. Every field is an
identifier, a number, a boolean or a controlled enum.

Allowlist (what we log):
- request_id / session_id: tracing identifiers (anonymous session ids)
- timestamp: When the event occurred
- language: "en" or "ar"
- severity / urgency_score / action: triage outcome enums and numbers
- input_chars / sanitized_chars: lengths before and after sanitization
- input_modified: whether the sanitizer changed the input
- suspicious: intent classifier flag on the raw input
- latency_ms, model, error_code

Blocklist (NEVER log):
- symptom descriptions, raw or sanitized
- patient context (age, gender, medical history)
- prompts and LLM responses
- IP addresses or user agents

Design decisions:
- Separate audit logger from application logger
- Structured JSON lines for machine parsing
- File rotation to prevent unbounded growth
- Explicit function interface to prevent accidental content logging
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Literal

from .settings import DATA_DIR

AUDIT_LOG_PATH = DATA_DIR / "audit.jsonl"

EventType = Literal[
    "symptom_check",
    "suspicious_input",
    "emergency",
    "rate_limited",
    "validation",
    "error",
]


@dataclass(frozen=True)
class AuditEvent:
    """
    Structured audit event with allowlist-only fields.

    No free-text content is allowed.
    """
    event_type: EventType
    request_id: str
    timestamp: str
    session_id: str = ""
    language: str = ""
    severity: str = ""
    urgency_score: int = 0
    action: str = ""
    input_chars: int = 0
    sanitized_chars: int = 0
    input_modified: bool = False
    suspicious: bool = False
    latency_ms: int = 0
    model: str = ""
    error_code: str = ""

    def to_json(self) -> str:
        """Serialize to JSON line."""
        return json.dumps(asdict(self), ensure_ascii=False)


def _get_audit_logger() -> logging.Logger:
    """
    Get or create the audit logger with file rotation.

    Separate from application logging to ensure audit events
    are captured even if app logging fails.
    """
    logger = logging.getLogger("audit")

    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    logger.propagate = False

    AUDIT_LOG_PATH.parent.mkdir(parents=True, exist_ok=True)

    # 10MB max, keep 5 backups
    handler = RotatingFileHandler(
        AUDIT_LOG_PATH,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    return logger


def _emit(event: AuditEvent) -> None:
    _get_audit_logger().info(event.to_json())


def generate_request_id() -> str:
    """Generate a unique request ID for tracing."""
    return uuid.uuid4().hex[:16]


def utcnow_iso() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(UTC).isoformat()


def log_symptom_check(
    request_id: str,
    session_id: str,
    language: str,
    severity: str,
    urgency_score: int,
    action: str,
    input_chars: int,
    sanitized_chars: int,
    input_modified: bool,
    suspicious: bool,
    latency_ms: int,
    model: str,
) -> None:
    """
    Log a completed symptom analysis.

    Note: We deliberately do NOT accept the symptom text or the analysis.
    """
    _emit(
        AuditEvent(
            event_type="symptom_check",
            request_id=request_id,
            timestamp=utcnow_iso(),
            session_id=session_id,
            language=language,
            severity=severity,
            urgency_score=urgency_score,
            action=action,
            input_chars=input_chars,
            sanitized_chars=sanitized_chars,
            input_modified=input_modified,
            suspicious=suspicious,
            latency_ms=latency_ms,
            model=model,
        )
    )


def log_suspicious_input(
    request_id: str,
    session_id: str,
    input_chars: int,
    sanitized_chars: int,
    input_modified: bool,
) -> None:
    """
    Log that the intent classifier flagged the raw input.

    Monitoring only: the request continues with the sanitized text.
    """
    _emit(
        AuditEvent(
            event_type="suspicious_input",
            request_id=request_id,
            timestamp=utcnow_iso(),
            session_id=session_id,
            input_chars=input_chars,
            sanitized_chars=sanitized_chars,
            input_modified=input_modified,
            suspicious=True,
        )
    )


def log_emergency(
    request_id: str,
    session_id: str,
    severity: str,
    urgency_score: int,
) -> None:
    """Log an analysis that triggered the emergency warning."""
    _emit(
        AuditEvent(
            event_type="emergency",
            request_id=request_id,
            timestamp=utcnow_iso(),
            session_id=session_id,
            severity=severity,
            urgency_score=urgency_score,
        )
    )


def log_error(
    request_id: str,
    session_id: str,
    error_code: str,
    event_type: Literal["error", "rate_limited", "validation"] = "error",
) -> None:
    """
    Log a rejected or failed request.

    Note: We log error_code, not error message (which could contain user input).
    """
    _emit(
        AuditEvent(
            event_type=event_type,
            request_id=request_id,
            timestamp=utcnow_iso(),
            session_id=session_id,
            error_code=error_code,
        )
    )


class RequestTimer:
    """Context manager for timing requests."""

    def __init__(self):
        self.start_time: float = 0
        self.elapsed_ms: int = 0

    def __enter__(self) -> RequestTimer:
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.elapsed_ms = int((time.perf_counter() - self.start_time) * 1000)
