"""
Anonymous symptom checker - request handler facade.

Pages (and any HTTP adapter) call check_symptoms() with the decoded request
payload and get back a status code plus a JSON-ready body:

    {"success": true, "data": {...}, "sessionId": "anon_...", "rateLimit": {...}}
    {"success": false, "error": {"code": ..., "message": ...}, "sessionId": ""}

Pipeline:
    validate -> rate limit -> classify raw input (audit only)
    -> sanitize + fence + LLM (symptom_core) -> public response -> audit

SECURITY:
- The intent classifier never blocks; flagged inputs are analyzed with the
  sanitized text and recorded as "suspicious_input" audit events
- Neither application nor audit logs receive symptom text
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Mapping, MutableMapping

from pydantic import ValidationError

from .audit_log import (
    RequestTimer,
    generate_request_id,
    log_emergency,
    log_error,
    log_suspicious_input,
    log_symptom_check,
)
from .rate_limit import check_rate_limit, evict_expired, rate_limit_status
from .security import detect_malicious_intent, sanitize_symptoms
from .settings import settings
from .symptom_core import (
    AnalysisUnavailableError,
    LLMInvokeFn,
    analyze_symptoms,
    build_anonymous_response,
    is_emergency,
)
from .symptom_runtime import llm_invoke, make_config
from .symptom_types import SUPPORTED_LANGUAGES, AnalyzeSymptomRequest, ErrorInfo

logger = logging.getLogger(__name__)

# Per-process store used when the caller has no session state of its own.
# Expired buckets are evicted on every check.
_RATE_STATE: dict[str, Any] = {}
_RATE_PREFIX = "symptoms:"

_MSG_INTERNAL = (
    "Symptom analysis temporarily unavailable. "
    "Please try again or consult a healthcare professional."
)


@dataclass(frozen=True)
class CheckResult:
    """HTTP-style result: status code and JSON-serializable body."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def _error(status_code: int, code: str, message: str) -> CheckResult:
    return CheckResult(
        status_code=status_code,
        body={
            "success": False,
            "error": ErrorInfo(code=code, message=message).model_dump(),
            "sessionId": "",
        },
    )


def client_id_from_headers(headers: Mapping[str, str] | None) -> str:
    """
    Resolve a rate-limit identity from request headers.

    First hop of X-Forwarded-For, then X-Real-IP, else "anonymous".
    """
    if not headers:
        return "anonymous"
    lowered = {k.lower(): v for k, v in headers.items()}
    forwarded = (lowered.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    real_ip = (lowered.get("x-real-ip") or "").strip()
    return real_ip or "anonymous"


def validate_request(
    payload: Any,
    min_len: int = 3,
    max_len: int = 2000,
) -> tuple[AnalyzeSymptomRequest | None, ErrorInfo | None]:
    """
    Validate a decoded request payload.

    Returns:
        (request, None) when valid, (None, error) otherwise.
        Error codes: MISSING_SYMPTOMS, SYMPTOMS_TOO_SHORT, SYMPTOMS_TOO_LONG,
        UNSUPPORTED_LANGUAGE, INVALID_REQUEST
    """
    if not isinstance(payload, Mapping):
        return None, ErrorInfo(code="INVALID_REQUEST", message="Request body must be a JSON object")

    symptoms = payload.get("symptoms")
    description = symptoms.get("description") if isinstance(symptoms, Mapping) else None
    if not isinstance(description, str) or not description.strip():
        return None, ErrorInfo(code="MISSING_SYMPTOMS", message="Symptom description is required")

    if len(description) < min_len:
        return None, ErrorInfo(
            code="SYMPTOMS_TOO_SHORT",
            message="Please provide more detailed symptom description",
        )

    if len(description) > max_len:
        return None, ErrorInfo(
            code="SYMPTOMS_TOO_LONG",
            message=f"Symptom description is too long. Please limit to {max_len} characters.",
        )

    if payload.get("language") not in SUPPORTED_LANGUAGES:
        return None, ErrorInfo(
            code="UNSUPPORTED_LANGUAGE",
            message=f"Supported languages: {', '.join(SUPPORTED_LANGUAGES)}",
        )

    try:
        return AnalyzeSymptomRequest.model_validate(payload), None
    except ValidationError as e:
        logger.info("Invalid symptom request", extra={"error_count": e.error_count()})
        return None, ErrorInfo(code="INVALID_REQUEST", message="Invalid request fields")


def check_symptoms(
    payload: Any,
    client_id: str = "anonymous",
    rate_state: MutableMapping[str, Any] | None = None,
    session_id: str = "",
    llm_invoke_fn: LLMInvokeFn | None = None,
) -> CheckResult:
    """
    Run an anonymous symptom check.

    Args:
        payload: Decoded request body (AnalyzeSymptomRequest shape, camelCase)
        client_id: Rate-limit identity (see client_id_from_headers)
        rate_state: Rate-limit store; defaults to a per-process dict
        session_id: Caller's UI session id, for audit correlation only
        llm_invoke_fn: LLM function; defaults to the LangChain runtime

    Returns:
        CheckResult with status 200, 400, 429, 503 or 500
    """
    request_id = generate_request_id()
    state = _RATE_STATE if rate_state is None else rate_state
    invoke = llm_invoke_fn or llm_invoke

    request, error = validate_request(payload, settings.min_symptom_len, settings.max_symptom_len)
    if error is not None:
        log_error(request_id, session_id, error.code, event_type="validation")
        return _error(400, error.code, error.message)

    evict_expired(state, settings.rate_limit_window_seconds, prefix=_RATE_PREFIX)
    rate_key = f"{_RATE_PREFIX}{client_id}"
    allowed, retry_after = check_rate_limit(
        state,
        key=rate_key,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    if not allowed:
        log_error(request_id, session_id, "RATE_LIMIT_EXCEEDED", event_type="rate_limited")
        result = _error(
            429,
            "RATE_LIMIT_EXCEEDED",
            "Rate limit exceeded. Please try again later or register for unlimited access.",
        )
        result.body["retryAfter"] = retry_after
        return result

    anon_session_id = f"anon_{uuid.uuid4()}"
    language = request.language
    description = request.symptoms.description

    sanitized = sanitize_symptoms(description, settings.max_symptom_len)
    modified = sanitized != description
    suspicious = detect_malicious_intent(description)
    if suspicious:
        logger.warning(
            "Suspicious symptom input",
            extra={"request_id": request_id, "input_chars": len(description)},
        )
        log_suspicious_input(
            request_id,
            anon_session_id,
            input_chars=len(description),
            sanitized_chars=len(sanitized),
            input_modified=modified,
        )

    cfg = make_config()
    with RequestTimer() as timer:
        try:
            analysis = analyze_symptoms(
                description,
                language,
                invoke,
                patient_context=request.patient_context,
                cfg=cfg,
            )
        except AnalysisUnavailableError:
            log_error(request_id, anon_session_id, "LLM_UNAVAILABLE")
            return _error(503, "ANALYSIS_UNAVAILABLE", _MSG_INTERNAL)
        except Exception:
            logger.exception(
                "Symptom analysis failed",
                extra={"request_id": request_id, "error_code": "INTERNAL_SERVER_ERROR"},
            )
            log_error(request_id, anon_session_id, "INTERNAL_SERVER_ERROR")
            return _error(500, "INTERNAL_SERVER_ERROR", _MSG_INTERNAL)

    response = build_anonymous_response(analysis, anon_session_id, language, cfg)

    if is_emergency(analysis, cfg.emergency_urgency_threshold):
        logger.error(
            "Emergency case detected",
            extra={"request_id": request_id, "session_id": anon_session_id},
        )
        log_emergency(request_id, anon_session_id, analysis.severity, analysis.urgency_score)

    log_symptom_check(
        request_id=request_id,
        session_id=anon_session_id,
        language=language,
        severity=analysis.severity,
        urgency_score=analysis.urgency_score,
        action=analysis.recommendations.action,
        input_chars=len(description),
        sanitized_chars=len(sanitized),
        input_modified=modified,
        suspicious=suspicious,
        latency_ms=timer.elapsed_ms,
        model=settings.openai_chat_model,
    )

    status = rate_limit_status(
        state,
        key=rate_key,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    return CheckResult(
        status_code=200,
        body={
            "success": True,
            "data": response.model_dump(by_alias=True),
            "sessionId": anon_session_id,
            "expiresAt": (
                datetime.now(UTC) + timedelta(hours=settings.session_ttl_hours)
            ).isoformat(),
            "rateLimit": {
                "remaining": status.remaining,
                "resetTime": datetime.fromtimestamp(status.reset_at, UTC).isoformat(),
            },
        },
    )
