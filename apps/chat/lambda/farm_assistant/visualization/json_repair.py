"""Narrow repairs for the JSON-like text models emit without code fences."""

import json
import re
from typing import Any

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)")


def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def quote_unquoted_keys(text: str) -> str:
    return _UNQUOTED_KEY.sub(r'\1"\2"\3', text)


def normalize_single_quotes(text: str) -> str:
    """Turn single-quoted strings into double-quoted ones.

    Double-quoted strings are copied untouched, so apostrophes inside them
    survive.
    """
    out: list[str] = []
    quote: str | None = None
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and quote is not None and index + 1 < len(text):
            escaped = text[index + 1]
            # \' is not a JSON escape.
            out.append("'" if quote == "'" and escaped == "'" else char + escaped)
            index += 2
            continue
        if quote is None:
            if char in ("'", '"'):
                quote = char
                out.append('"')
            else:
                out.append(char)
        elif char == quote:
            quote = None
            out.append('"')
        elif quote == "'" and char == '"':
            out.append('\\"')
        else:
            out.append(char)
        index += 1
    return "".join(out)


def repair_json(text: str) -> str:
    """Apply the repairs in their fixed order."""
    return normalize_single_quotes(quote_unquoted_keys(remove_trailing_commas(text)))


def parse_json_lenient(text: str) -> Any | None:
    """Parse, or repair once and parse again; ``None`` when both fail."""
    try:
        return json.loads(text)
    except ValueError:
        pass
    try:
        return json.loads(repair_json(text))
    except ValueError:
        return None
