"""
Symptom analysis runtime - Streamlit and LangChain adapters.

Concrete implementations of the interfaces used by symptom_core.py:
- Streamlit caching (@st.cache_resource) for the chat model
- LangChain ChatOpenAI as the LLM oracle
- Conversion between the generic message format and LangChain messages

The separation allows symptom_core to be tested without these dependencies.

Design decisions:

Why LangChain messages instead of ChatPromptTemplate?
- The prompts contain a literal JSON skeleton and escaped user braces;
  a template would treat "{...}" as variables

Why tenacity?
- Transient API errors (rate limits, timeouts) are common on a public endpoint
- Exponential backoff, bounded attempts, then AnalysisUnavailableError
"""

from __future__ import annotations

import logging

import streamlit as st
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from tenacity import RetryError, retry, stop_after_attempt, wait_exponential

from .settings import settings
from .symptom_core import AnalysisConfig, AnalysisUnavailableError

logger = logging.getLogger(__name__)

_MESSAGE_TYPES: dict[str, type[BaseMessage]] = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


@st.cache_resource
def llm():
    """Get cached chat model for symptom analysis."""
    return ChatOpenAI(
        model=settings.openai_chat_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )


def make_config() -> AnalysisConfig:
    """Create AnalysisConfig from application settings."""
    return AnalysisConfig(
        emergency_urgency_threshold=settings.emergency_urgency_threshold,
        cultural_context=settings.cultural_context,
    )


def to_langchain_messages(messages: list[dict[str, str]]) -> list[BaseMessage]:
    """
    Convert generic message dicts to LangChain message objects.

    Raises:
        ValueError: on an unknown role
    """
    out: list[BaseMessage] = []
    for m in messages:
        cls = _MESSAGE_TYPES.get(m.get("role", ""))
        if cls is None:
            raise ValueError(f"Unknown message role: {m.get('role')!r}")
        out.append(cls(content=m["content"]))
    return out


@retry(
    stop=stop_after_attempt(settings.llm_max_attempts),
    wait=wait_exponential(min=1, max=8),
)
def _invoke_with_retry(lc_messages: list[BaseMessage]) -> str:
    result = llm().invoke(lc_messages)
    content = getattr(result, "content", "")
    return content if isinstance(content, str) else str(content)


def llm_invoke(messages: list[dict[str, str]]) -> str:
    """
    Invoke the chat model and return its raw text.

    This is the concrete implementation of LLMInvokeFn.

    Raises:
        AnalysisUnavailableError: when every attempt failed
    """
    lc_messages = to_langchain_messages(messages)
    try:
        return _invoke_with_retry(lc_messages)
    except RetryError as e:
        logger.error(
            "LLM call failed after retries",
            extra={"error_code": "LLM_UNAVAILABLE", "attempts": settings.llm_max_attempts},
        )
        raise AnalysisUnavailableError("AI analysis temporarily unavailable") from e
