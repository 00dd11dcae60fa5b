"""
Prompt injection defense for the AI symptom checker.

Three pure functions guard the free-text symptom description before it is
embedded into an LLM prompt:

- sanitize_symptoms: neutralizes injection phrasing, escapes prompt-structure
  characters, strips code blocks and restricts the character set
- detect_malicious_intent: cheap keyword heuristic on the RAW input, used for
  audit/monitoring only (never blocks)
- wrap_with_delimiters: fences user content with #### markers

Design decisions:
- Replace, don't reject: a symptom description that also contains an injection
  attempt still gets analyzed, with the attack replaced by [REMOVED]
- Ordered pattern table: earlier replacements can hide text from later patterns
- Allow-list last: printable ASCII + Arabic + a few medical symbols (°)
- Total functions: never raise, non-string input yields ""

Known limitations (acceptable for a single-turn checker):
- Regex blocklist can be bypassed with synonyms, typos, other languages
- Keyword classifier is substring-based ("escape" also matches "escaped")
- No multi-turn or semantic detection
- Characters dropped by the allow-list (zero-width space, emoji...) inside a
  keyword hide it from the pattern table; the allow-list runs later and rejoins
  the phrase ("Ign<U+200B>ore previous instructions")

SECURITY:
- Layer 1: this module (sanitization + delimiters)
- Layer 2: hardened system prompt in prompt_templates.py
- Layer 3: schema validation of the LLM output in symptom_core.py
"""

from __future__ import annotations

import re
from typing import Any

MAX_SANITIZED_LEN = 2000

REMOVED_TOKEN = "[REMOVED]"
CODE_REMOVED_TOKEN = "[CODE REMOVED]"
DELIMITER = "####"

# Whitespace as JavaScript's \s and trim() define it. Python's "\s" misses
# U+FEFF and would also accept \x1c-\x1f and \x85.
_WHITESPACE = r"\t\n\x0b\x0c\r\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
_TRIM_CHARS = " \t\n\x0b\x0c\r\u00a0\u1680\u2028\u2029\u202f\u205f\u3000\ufeff" + "".join(
    map(chr, range(0x2000, 0x200B))
)
_WS = rf"[ {_WHITESPACE}]"
# ASCII-only word boundary before a keyword: a non-ASCII letter glued to the
# keyword must not hide it. Case-sensitive so that IGNORECASE folding (Kelvin
# sign to "k") does not widen the class.
_WORD_START = r"(?-i:(?<![A-Za-z0-9_]))"

# Applied in order; each pattern replaces every occurrence with REMOVED_TOKEN.
# Greedy ".*" does not cross newlines (no DOTALL).
DANGEROUS_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"ignore.*(?:previous|above|prior).*instructions?",
        r"disregard.*instructions?",
        r"forget.*(?:previous|everything)",
        r"(?:new|override).*instructions?:",
        rf"system{_WS}*:",
        rf"assistant{_WS}*:",
        rf"{_WORD_START}prompt{_WS}*:",
        r"reveal.*(?:prompt|instructions?)",
        r"show.*(?:prompt|instructions?)",
        r"what.*your.*(?:prompt|instructions?)",
        r"repeat.*(?:prompt|instructions?)",
        rf"{_WORD_START}do{_WS}+not{_WS}+follow",
        rf"{_WORD_START}instead{_WS}+(?:do|follow)",
    )
)

# Lowercase substrings; any hit flags the input.
SUSPICIOUS_KEYWORDS: frozenset[str] = frozenset(
    {
        "jailbreak",
        "bypass",
        "exploit",
        "injection",
        "system prompt",
        "ignore instruction",
        "reveal prompt",
        "override",
        "backdoor",
        "escape",
        "previous instructions",
        "prior instructions",
    }
)

# Backslash must come first so later escapes are not doubled.
_ESCAPED_CHARS = ("\\", '"', "`", "$", "{", "}")

_EXCESS_NEWLINES = re.compile(r"\n{3,}")

# Backticks may already carry an escaping backslash from the previous pass.
_CODE_FENCE = re.compile(r"(?:\\?`){3}.*?(?:\\?`){3}", re.DOTALL)
_SCRIPT_BLOCK = re.compile(r"<script.*?</script>", re.IGNORECASE | re.DOTALL)

_DISALLOWED_CHARS = re.compile(
    rf"[^\x20-\x7E\u0600-\u06FF\u0750-\u077F{_WHITESPACE}\-.,'()\u00B0]"
)

_DELIMITER_RUN = re.compile(r"#{4,}")


def remove_dangerous_patterns(text: str) -> str:
    """Replace instruction-override phrasing with [REMOVED], pattern by pattern."""
    for pattern in DANGEROUS_PATTERNS:
        text = pattern.sub(REMOVED_TOKEN, text)
    return text


def escape_structural_chars(text: str) -> str:
    """Backslash-escape prompt-structure characters and cap blank lines at one."""
    for ch in _ESCAPED_CHARS:
        text = text.replace(ch, "\\" + ch)
    return _EXCESS_NEWLINES.sub("\n\n", text)


def remove_code_blocks(text: str) -> str:
    """Drop fenced code and <script> blocks, contents included."""
    text = _CODE_FENCE.sub(CODE_REMOVED_TOKEN, text)
    return _SCRIPT_BLOCK.sub(REMOVED_TOKEN, text)


def filter_allowed_chars(text: str) -> str:
    """
    Keep printable ASCII, Arabic script, whitespace and common medical symbols.

    Idempotent: filtering an already filtered string is a no-op.
    """
    return _DISALLOWED_CHARS.sub("", text)


def sanitize_symptoms(text: Any, max_len: int = MAX_SANITIZED_LEN) -> str:
    """
    Sanitize a symptom description before it is interpolated into a prompt.

    Pipeline (order matters):
        trim -> dangerous patterns -> escaping -> code/script removal
        -> character allow-list -> length cap

    Args:
        text: Raw user input. Anything that is not a str yields "".
        max_len: Maximum length of the result

    Returns:
        Sanitized text, at most max_len characters
    """
    if not isinstance(text, str) or not text:
        return ""

    sanitized = text.strip(_TRIM_CHARS)
    sanitized = remove_dangerous_patterns(sanitized)
    sanitized = escape_structural_chars(sanitized)
    sanitized = remove_code_blocks(sanitized)
    sanitized = filter_allowed_chars(sanitized)
    return sanitized[:max_len]


def detect_malicious_intent(text: Any) -> bool:
    """
    Flag raw input containing a suspicious keyword (case-insensitive substring).

    Used for audit logging only. The request is processed either way.
    """
    if not isinstance(text, str):
        return False
    low = text.lower()
    return any(k in low for k in SUSPICIOUS_KEYWORDS)


def wrap_with_delimiters(text: str) -> str:
    """
    Fence user content as ####\\n<content>\\n####.

    Runs of four or more '#' inside the content are shortened to '###' so the
    result always splits on the delimiter into exactly (empty, content, empty).
    """
    content = _DELIMITER_RUN.sub("###", text or "")
    return f"{DELIMITER}\n{content}\n{DELIMITER}"
