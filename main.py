import streamlit as st
from dotenv import load_dotenv

from backend.logging_config import setup_logging

load_dotenv()
setup_logging()

st.set_page_config(page_title="MediSecure Symptom Checker", page_icon="🩺", layout="wide")

st.title("🩺 MediSecure: AI Symptom Checker")

st.markdown(
    """
Free, anonymous, preliminary assessment of your symptoms (English / العربية).

- Go to **Symptom checker** to describe your symptoms
- You get a severity level, an urgency score and a recommended next step

### Safety

- ✅ **No account needed**: anonymous session, nothing stored
- ✅ **Input sanitization**: injection attempts are neutralized before reaching the AI
- ✅ **Minimal logs**: audit events carry ids and scores, never your symptoms
- ✅ **Emergency detection**: urgent cases are flagged with Qatar emergency numbers
"""
)

st.warning(
    "This tool does not replace a doctor. In an emergency call **999** immediately."
)
