"""Conversion of tool specs into provider-native declarations."""

import copy
from collections.abc import Sequence
from typing import Any

from .registry import ToolSpec


def to_openai_tool(spec: ToolSpec) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": spec.name,
            "description": spec.description,
            "parameters": copy.deepcopy(spec.parameters),
        },
    }


def to_gemini_declaration(spec: ToolSpec) -> dict[str, Any]:
    """google-genai takes raw JSON Schema under ``parameters_json_schema``."""
    return {
        "name": spec.name,
        "description": spec.description,
        "parameters_json_schema": copy.deepcopy(spec.parameters),
    }


def to_vendor_schema(spec: ToolSpec, vendor: str) -> dict[str, Any]:
    if vendor == "openai":
        return to_openai_tool(spec)
    if vendor == "gemini":
        return to_gemini_declaration(spec)
    raise ValueError(f"Unsupported provider: {vendor}")


def build_openai_tools(specs: Sequence[ToolSpec]) -> list[dict[str, Any]]:
    return [to_openai_tool(spec) for spec in specs]


def build_gemini_tools(specs: Sequence[ToolSpec]) -> list[dict[str, Any]]:
    """Gemini groups every declaration under one tool entry."""
    if not specs:
        return []
    return [{"function_declarations": [to_gemini_declaration(spec) for spec in specs]}]
