"""
Symptom checker page - anonymous AI symptom assessment.

SECURITY:
- No login: rate limited per browser session
- Symptoms are sanitized and fenced before reaching the LLM (backend.security)
- Audit logging with allowlist policy (no symptom text)
"""

import logging
import os
import uuid

import streamlit as st
from dotenv import load_dotenv

from backend.logging_config import setup_logging
from backend.settings import settings
from backend.symptom_checker import check_symptoms
from backend.symptom_types import QATAR_EMERGENCY_CONTACTS, SYMPTOM_SEVERITIES

load_dotenv()
setup_logging()

logger = logging.getLogger(__name__)

_SEVERITY_ICONS = dict(zip(SYMPTOM_SEVERITIES, ("🟢", "🟡", "🟠", "🔴")))

_LABELS = {
    "en": {
        "describe": "Describe your symptoms",
        "placeholder": "e.g. I have a fever of 38°C, headache, and fatigue for 2 days",
        "age": "Age (optional)",
        "gender": "Gender (optional)",
        "submit": "Analyze symptoms",
        "severity": "Severity",
        "urgency": "Urgency",
        "action": "Recommended action",
        "advice": "General advice",
        "follow_up": "Questions a doctor may ask",
        "contacts": "Qatar emergency contacts",
    },
    "ar": {
        "describe": "صف الأعراض التي تعاني منها",
        "placeholder": "مثال: أعاني من صداع وحمى منذ يومين",
        "age": "العمر (اختياري)",
        "gender": "الجنس (اختياري)",
        "submit": "حلل الأعراض",
        "severity": "درجة الخطورة",
        "urgency": "درجة الاستعجال",
        "action": "الإجراء المقترح",
        "advice": "نصائح عامة",
        "follow_up": "أسئلة قد يطرحها الطبيب",
        "contacts": "أرقام الطوارئ في قطر",
    },
}


def _display_result(data: dict, labels: dict[str, str]) -> None:
    """Render the anonymous assessment returned by check_symptoms()."""
    if data.get("emergencyWarning"):
        st.error(data["emergencyWarning"])

    severity = data["severity"]
    col_a, col_b, col_c = st.columns(3)
    col_a.metric(labels["severity"], f"{_SEVERITY_ICONS.get(severity, '')} {severity}")
    col_b.metric(labels["urgency"], f"{data['urgencyScore']}/10")
    col_c.metric(labels["action"], data["recommendations"]["action"])
    st.caption(data["recommendations"]["timeframe"])

    st.markdown(data["analysis"])

    with st.expander(labels["advice"], expanded=True):
        st.markdown(data["generalAdvice"])
        st.markdown(data["whenToSeekHelp"])

    if data.get("followUpQuestions"):
        with st.expander(labels["follow_up"]):
            for q in data["followUpQuestions"]:
                st.markdown(f"- {q}")

    st.info(data["registrationPrompt"])


st.title("🩺 Symptom checker")

if not os.getenv("OPENAI_API_KEY"):
    st.error("OPENAI_API_KEY missing: the AI model cannot be called.")
    st.stop()

if "session_id" not in st.session_state:
    st.session_state["session_id"] = uuid.uuid4().hex[:16]

language = st.radio("Language / اللغة", ["en", "ar"], horizontal=True, format_func=lambda x: "English" if x == "en" else "العربية")
labels = _LABELS[language]

with st.sidebar:
    with st.expander("⚙️ Technical settings"):
        st.caption(
            f"Rate limit: {settings.rate_limit_max_requests} req / {settings.rate_limit_window_seconds}s"
        )
        st.caption(f"Model: {settings.openai_chat_model}")
    if settings.show_emergency_contacts:
        st.subheader(labels["contacts"])
        for c in QATAR_EMERGENCY_CONTACTS:
            st.caption(f"📞 **{c.number}**: {c.name}")

with st.form("symptom_form"):
    description = st.text_area(
        labels["describe"],
        placeholder=labels["placeholder"],
        max_chars=settings.max_symptom_len,
        height=160,
    )
    col_age, col_gender = st.columns(2)
    with col_age:
        age = st.number_input(labels["age"], min_value=0, max_value=130, value=None, step=1)
    with col_gender:
        gender = st.selectbox(labels["gender"], [None, "male", "female"])
    submitted = st.form_submit_button(labels["submit"], use_container_width=True)

if submitted:
    payload: dict = {"symptoms": {"description": description}, "language": language}
    if age is not None or gender:
        payload["patientContext"] = {"age": int(age) if age is not None else None, "gender": gender}

    with st.spinner("…"):
        result = check_symptoms(
            payload,
            client_id=st.session_state["session_id"],
            rate_state=st.session_state,
            session_id=st.session_state["session_id"],
        )

    if result.ok:
        _display_result(result.body["data"], labels)
    elif result.status_code == 429:
        st.warning(
            f"{result.body['error']['message']} (~{result.body.get('retryAfter', 0)}s)"
        )
    else:
        st.error(result.body["error"]["message"])
