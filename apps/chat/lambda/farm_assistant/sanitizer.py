"""Sanitize model output before it is shown to the user."""

import re

_VALIDATION_PATTERNS = (
    re.compile(r"Response Validation\s*\d+%?\s*confidence", re.IGNORECASE),
    re.compile(r"The LLM response accurately[^.]+\.", re.IGNORECASE),
    re.compile(r"confidence:\s*\d+%?", re.IGNORECASE),
    re.compile(r"validation (passed|failed|completed)", re.IGNORECASE),
    re.compile(r"\b\d+%?\s*confidence\b", re.IGNORECASE),
)
_LEAKED_FUNCTION_CALL = re.compile(r"\b(get|list|create|update|delete)[A-Za-z0-9_]*\s*\([^)]*\)")
_EXCESS_NEWLINES = re.compile(r"\n\s*\n\s*\n")


def sanitize_response_content(raw: str) -> str:
    """Remove leaked validation text and function-call syntax."""
    if not raw:
        return ""
    content = raw
    for pattern in _VALIDATION_PATTERNS:
        content = pattern.sub("", content)
    content = _LEAKED_FUNCTION_CALL.sub("[action performed]", content)
    content = _EXCESS_NEWLINES.sub("\n\n", content)
    return content.strip()
