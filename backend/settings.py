"""
Centralized configuration for the MediSecure symptom checker.

Design decisions:
- Frozen dataclass: immutable after creation, prevents accidental modification
- Environment variables: 12-factor app compliance, easy deployment configuration
- Sensible defaults: works out of the box for development

Key parameters explained:

LLM:
- gpt-4.1-mini: cheap, fast, good multilingual (Arabic) quality
- temperature=0.3: consistent medical advice with some phrasing freedom
- max_tokens=1000: the JSON assessment fits comfortably, caps cost
- llm_max_attempts=3: retries transient API errors before giving up

Symptom input:
- min_symptom_len=3 / max_symptom_len=2000: same bounds as the sanitizer cap

Anonymous access:
- 10 requests per 3600s per client: public, unauthenticated endpoint
- session_ttl_hours=24: anonymous session ids are only meaningful for a day

Triage:
- emergency_urgency_threshold=8: urgency >= 8 is treated like severity "Emergency"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"

DATA_DIR.mkdir(parents=True, exist_ok=True)


def _env_bool(name: str, default: bool) -> bool:
    """Parse boolean from environment variable."""
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    """Parse float from environment variable."""
    v = os.getenv(name)
    if v is None:
        return default
    return float(v)


def _env_int(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    v = os.getenv(name)
    if v is None:
        return default
    return int(v)


@dataclass(frozen=True)
class Settings:
    """
    Application settings.

    All settings can be overridden via environment variables.

    Attributes:
        openai_chat_model: LLM used for symptom analysis
        llm_temperature: Sampling temperature
        llm_max_tokens: Max tokens in the LLM answer
        llm_max_attempts: Attempts (including the first) for the LLM call
        min_symptom_len: Minimum description length in characters
        max_symptom_len: Maximum description length in characters
        rate_limit_max_requests: Max anonymous checks per window and client
        rate_limit_window_seconds: Rate limit window duration
        session_ttl_hours: Lifetime of an anonymous session id
        emergency_urgency_threshold: Urgency score that triggers the emergency warning
        cultural_context: Region used for cultural prompt notes (qatar, gulf, general)
        show_emergency_contacts: Display the emergency numbers block in the UI
    """

    openai_chat_model: str = os.getenv("OPENAI_CHAT_MODEL", "gpt-4.1-mini")
    llm_temperature: float = _env_float("LLM_TEMPERATURE", 0.3)
    llm_max_tokens: int = _env_int("LLM_MAX_TOKENS", 1000)
    llm_max_attempts: int = _env_int("LLM_MAX_ATTEMPTS", 3)

    min_symptom_len: int = _env_int("MIN_SYMPTOM_LEN", 3)
    max_symptom_len: int = _env_int("MAX_SYMPTOM_LEN", 2000)

    rate_limit_max_requests: int = _env_int("RATE_LIMIT_MAX_REQUESTS", 10)
    rate_limit_window_seconds: int = _env_int("RATE_LIMIT_WINDOW_SECONDS", 3600)

    session_ttl_hours: int = _env_int("SESSION_TTL_HOURS", 24)

    emergency_urgency_threshold: int = _env_int("EMERGENCY_URGENCY_THRESHOLD", 8)
    cultural_context: str = os.getenv("CULTURAL_CONTEXT", "qatar")

    show_emergency_contacts: bool = _env_bool("SHOW_EMERGENCY_CONTACTS", True)


settings = Settings()
