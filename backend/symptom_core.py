"""
Symptom analysis core - pure business logic with no external dependencies.

The LLM is injected as a plain function (LLMInvokeFn) so this module can be
tested with fakes, without Streamlit, LangChain or network access.

Key design decisions:
- The LLM is an opaque text-in/text-out oracle; its answer is expected to
  contain one JSON object matching AIResponse
- Unparseable or out-of-schema answers never fail the request: a conservative
  fallback assessment (Medium, urgency 5, see a doctor within 24-48h) is used
- Fixed bilingual copy for advice, help criteria and registration prompt, so
  safety-relevant text never depends on the LLM

SECURITY:
- Symptoms reach the prompt only through prompt_templates (sanitized + fenced)
- The LLM answer is schema-validated (enums, 1-10 urgency) before use
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable

from pydantic import ValidationError

from .prompt_templates import (
    build_anonymous_symptom_messages,
    build_follow_up_messages,
    build_symptom_analysis_messages,
)
from .symptom_types import (
    AIResponse,
    AnonymousRecommendations,
    AnonymousSymptomResponse,
    PatientContext,
    Recommendations,
)

logger = logging.getLogger(__name__)

# (messages) -> raw LLM text
LLMInvokeFn = Callable[[list[dict[str, str]]], str]


class AnalysisUnavailableError(RuntimeError):
    """The LLM could not produce an answer (after retries)."""


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for analysis behavior."""

    emergency_urgency_threshold: int = 8
    cultural_context: str = "qatar"
    max_follow_up_questions: int = 5


# ============================================================================
# FIXED COPY
# ============================================================================

_FALLBACK_ANALYSIS = {
    "en": "Sorry, there was an error analyzing symptoms. Please try again or consult a healthcare professional.",
    "ar": "عذراً، حدث خطأ في تحليل الأعراض. يرجى المحاولة مرة أخرى أو استشارة طبيب.",
}
_FALLBACK_TIMEFRAME = {"en": "within 24-48 hours", "ar": "خلال 24-48 ساعة"}

_GENERAL_ADVICE = {
    "en": {
        "Low": "Stay hydrated, get adequate rest, and monitor symptoms. Most mild symptoms improve on their own.",
        "Medium": "Monitor symptoms closely and seek medical care if they don't improve or worsen. Avoid strenuous activities.",
        "High": "Seek medical attention as soon as possible. Don't ignore these symptoms.",
        "Emergency": "This is a potential emergency. Seek immediate medical help or call 999.",
    },
    "ar": {
        "Low": "اشرب الكثير من الماء، واحصل على قسط كافٍ من الراحة، وراقب الأعراض. معظم الأعراض البسيطة تتحسن من تلقاء نفسها.",
        "Medium": "راقب الأعراض عن كثب واطلب الرعاية الطبية إذا لم تتحسن أو ازدادت سوءاً. تجنب الأنشطة الشاقة.",
        "High": "اطلب الرعاية الطبية في أقرب وقت ممكن. لا تتجاهل هذه الأعراض.",
        "Emergency": "هذه حالة طارئة محتملة. اطلب المساعدة الطبية الفورية أو اتصل بـ 999.",
    },
}
_DEFAULT_ADVICE = {
    "en": "Consult a healthcare professional for proper evaluation.",
    "ar": "استشر طبيباً للحصول على تقييم مناسب.",
}

_SEEK_HELP = {
    "en": """Seek immediate medical help if:
• Symptoms worsen rapidly
• New concerning symptoms develop
• You experience difficulty breathing or chest pain
• You lose consciousness or feel severely dizzy

Qatar emergency numbers: 999 for emergencies or +974 4439 4444 for Hamad Medical Corporation""",
    "ar": """اطلب المساعدة الطبية الفورية إذا:
• ازدادت الأعراض سوءاً بسرعة
• ظهرت أعراض جديدة ومقلقة
• واجهت صعوبة في التنفس أو ألماً في الصدر
• فقدت الوعي أو الشعور بالدوار الشديد

أرقام الطوارئ في قطر: 999 للطوارئ أو +974 4439 4444 لمؤسسة حمد الطبية""",
}

_REGISTRATION = {
    "en": """Get more with a MediSecure account:
• Personalized and detailed symptom analysis
• Secure medical history tracking
• Doctor appointment booking
• 24/7 Arabic language support

Register now for free to get personalized healthcare in Qatar!""",
    "ar": """احصل على المزيد مع حساب MediSecure:
• تحليل أعراض شخصي ومفصل
• تاريخ طبي محفوظ وآمن
• حجز مواعيد مع الأطباء
• دعم باللغة العربية على مدار الساعة

سجل الآن مجاناً لتحصل على رعاية صحية شخصية في قطر!""",
}

_EMERGENCY_WARNING = {
    "en": "WARNING: This may be an emergency. Call 999 or go to the nearest hospital immediately.",
    "ar": "تحذير: قد تكون هذه حالة طارئة. اتصل بـ 999 أو توجه إلى أقرب مستشفى فوراً.",
}


def _lang(language: str) -> str:
    return "ar" if language == "ar" else "en"


def general_advice(severity: str, language: str) -> str:
    """Return self-care advice for a severity level."""
    lang = _lang(language)
    return _GENERAL_ADVICE[lang].get(severity, _DEFAULT_ADVICE[lang])


def seek_help_advice(language: str) -> str:
    """Return the red-flag list with Qatar emergency numbers."""
    return _SEEK_HELP[_lang(language)]


def registration_prompt(language: str) -> str:
    """Return the account registration pitch shown to anonymous users."""
    return _REGISTRATION[_lang(language)]


def emergency_warning(language: str) -> str:
    """Return the emergency banner text."""
    return _EMERGENCY_WARNING[_lang(language)]


def fallback_response(language: str) -> AIResponse:
    """Conservative assessment used when the LLM answer is unusable."""
    lang = _lang(language)
    return AIResponse(
        analysis=_FALLBACK_ANALYSIS[lang],
        severity="Medium",
        urgency_score=5,
        recommendations=Recommendations(
            action="appointment",
            timeframe=_FALLBACK_TIMEFRAME[lang],
        ),
        follow_up_questions=[],
        language=lang,
    )


# ============================================================================
# LLM OUTPUT PARSING
# ============================================================================


def extract_json_object(text: str) -> str | None:
    """
    Return the span from the first '{' to the last '}' in text.

    LLMs often wrap the JSON in prose or a ```json fence.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def parse_ai_response(text: str, language: str) -> AIResponse:
    """
    Parse the LLM answer into an AIResponse.

    The requested language always wins over the one the model reports.

    Returns:
        Parsed response, or fallback_response() if no valid JSON object is found
    """
    lang = _lang(language)
    raw = extract_json_object(text)
    if raw is None:
        logger.warning("No JSON object in LLM answer", extra={"answer_len": len(text or "")})
        return fallback_response(lang)

    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("JSON root is not an object")
        data["language"] = lang
        if data.get("followUpQuestions") is None:
            data["followUpQuestions"] = []
        return AIResponse.model_validate(data)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning(
            "LLM answer failed schema validation",
            extra={"error_type": type(e).__name__, "answer_len": len(text)},
        )
        return fallback_response(lang)


def parse_follow_up_questions(text: str, limit: int = 5) -> list[str]:
    """Extract {"questions": [...]} from the LLM answer; [] on any problem."""
    raw = extract_json_object(text)
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        return []
    questions = data.get("questions") if isinstance(data, dict) else None
    if not isinstance(questions, list):
        return []
    return [q.strip() for q in questions if isinstance(q, str) and q.strip()][:limit]


# ============================================================================
# MAIN ENTRYPOINTS
# ============================================================================


def is_emergency(analysis: AIResponse, threshold: int = 8) -> bool:
    """Severity "Emergency" or urgency at/above threshold."""
    return analysis.severity == "Emergency" or analysis.urgency_score >= threshold


def suggest_follow_up_questions(
    symptoms: str,
    language: str,
    llm_invoke: LLMInvokeFn,
    cfg: AnalysisConfig = AnalysisConfig(),
) -> list[str]:
    """Ask the LLM for follow-up questions. Returns [] if the call fails."""
    messages = build_follow_up_messages(symptoms, language)
    try:
        text = llm_invoke(messages)
    except Exception:
        logger.warning("Follow-up question call failed", extra={"error_code": "FOLLOW_UP_ERROR"})
        return []
    return parse_follow_up_questions(text, cfg.max_follow_up_questions)


def analyze_symptoms(
    description: str,
    language: str,
    llm_invoke: LLMInvokeFn,
    patient_context: PatientContext | None = None,
    cfg: AnalysisConfig = AnalysisConfig(),
) -> AIResponse:
    """
    Analyze a symptom description with the injected LLM.

    Uses the full assessment prompt when patient context is given, the
    anonymous prompt otherwise. If the model returns no follow-up questions,
    a second, cheaper prompt asks for them.

    Args:
        description: Raw symptom description (sanitized by the prompt builders)
        language: "en" or "ar"
        llm_invoke: Function returning the raw LLM text for a message list
        patient_context: Optional age/gender/history
        cfg: Analysis configuration

    Returns:
        Validated AIResponse (possibly the fallback)

    Raises:
        Whatever llm_invoke raises for the main call; the caller decides
        how to report an unavailable model.
    """
    if patient_context is not None:
        messages = build_symptom_analysis_messages(
            description,
            language,
            patient_context=patient_context,
            cultural_context=cfg.cultural_context,
        )
    else:
        messages = build_anonymous_symptom_messages(description, language)

    text = llm_invoke(messages)
    analysis = parse_ai_response(text, language)

    if not analysis.follow_up_questions and analysis != fallback_response(language):
        questions = suggest_follow_up_questions(description, language, llm_invoke, cfg)
        if questions:
            analysis = analysis.model_copy(update={"follow_up_questions": questions})

    return analysis


def build_anonymous_response(
    analysis: AIResponse,
    session_id: str,
    language: str,
    cfg: AnalysisConfig = AnalysisConfig(),
) -> AnonymousSymptomResponse:
    """Turn an AIResponse into the simplified public response."""
    lang = _lang(language)
    return AnonymousSymptomResponse(
        analysis=analysis.analysis,
        severity=analysis.severity,
        urgency_score=analysis.urgency_score,
        recommendations=AnonymousRecommendations(
            action=analysis.recommendations.action,
            timeframe=analysis.recommendations.timeframe,
        ),
        general_advice=general_advice(analysis.severity, lang),
        when_to_seek_help=seek_help_advice(lang),
        registration_prompt=registration_prompt(lang),
        session_id=session_id,
        language=lang,
        follow_up_questions=list(analysis.follow_up_questions),
        emergency_warning=(
            emergency_warning(lang)
            if is_emergency(analysis, cfg.emergency_urgency_threshold)
            else None
        ),
    )
