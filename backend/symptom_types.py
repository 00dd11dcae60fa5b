"""
Request/response models for AI symptom analysis.

All models accept and emit camelCase keys (urgencyScore, followUpQuestions,
patientContext...) so the JSON contract matches the public web client and the
JSON schema the LLM is asked to fill. Python code uses snake_case attributes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Language = Literal["en", "ar"]
Severity = Literal["Low", "Medium", "High", "Emergency"]
RecommendedAction = Literal[
    "self-care",
    "appointment",
    "urgent-care",
    "emergency",
    "telemedicine",
    "specialist-referral",
]
Gender = Literal["male", "female"]

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "ar")
SYMPTOM_SEVERITIES: tuple[str, ...] = ("Low", "Medium", "High", "Emergency")
RECOMMENDED_ACTIONS: tuple[str, ...] = (
    "self-care",
    "appointment",
    "urgent-care",
    "emergency",
    "telemedicine",
    "specialist-referral",
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# REQUEST
# ============================================================================


class SymptomInput(CamelModel):
    """Symptoms as reported by the user."""

    description: str
    severity: int | None = Field(default=None, ge=1, le=10)
    duration: str | None = None  # e.g. "2 days"
    location: str | None = None  # body part
    triggers: list[str] = Field(default_factory=list)
    associated_symptoms: list[str] = Field(default_factory=list)


class PatientContext(CamelModel):
    """Optional, user-supplied context. Never persisted or logged."""

    age: int | None = Field(default=None, ge=0, le=130)
    gender: Gender | None = None
    medical_history: list[str] = Field(default_factory=list)


class AnalyzeSymptomRequest(CamelModel):
    symptoms: SymptomInput
    patient_context: PatientContext | None = None
    language: Language = "en"


class ErrorInfo(CamelModel):
    code: str
    message: str


# ============================================================================
# LLM OUTPUT
# ============================================================================


class Recommendations(CamelModel):
    action: RecommendedAction
    timeframe: str
    specialist: str | None = None


class AIResponse(CamelModel):
    """Structured assessment parsed from the LLM answer."""

    analysis: str
    severity: Severity
    urgency_score: int = Field(..., ge=1, le=10)
    recommendations: Recommendations
    follow_up_questions: list[str] = Field(default_factory=list)
    language: Language = "en"


# ============================================================================
# PUBLIC RESPONSE
# ============================================================================


class AnonymousRecommendations(CamelModel):
    action: RecommendedAction
    timeframe: str


class AnonymousSymptomResponse(CamelModel):
    """Simplified assessment returned to anonymous users."""

    analysis: str
    severity: Severity
    urgency_score: int
    recommendations: AnonymousRecommendations
    general_advice: str
    when_to_seek_help: str
    registration_prompt: str
    session_id: str
    language: Language
    follow_up_questions: list[str] = Field(default_factory=list)
    emergency_warning: str | None = None


class EmergencyContact(CamelModel):
    name: str
    number: str
    type: Literal["ambulance", "police", "fire", "poison-control", "hospital"]
    description: str


QATAR_EMERGENCY_CONTACTS: tuple[EmergencyContact, ...] = (
    EmergencyContact(
        name="Emergency Services",
        number="999",
        type="ambulance",
        description="All emergency services",
    ),
    EmergencyContact(
        name="Hamad Medical Corporation",
        number="+974 4439 4444",
        type="hospital",
        description="Main public hospital system",
    ),
    EmergencyContact(
        name="Qatar Red Crescent",
        number="+974 4442 2222",
        type="ambulance",
        description="Emergency medical services",
    ),
    EmergencyContact(
        name="Poison Control",
        number="+974 4439 9999",
        type="poison-control",
        description="Poison control and drug information",
    ),
)
