"""Shared constants and literal types for the farm assistant Lambda."""

from typing import Literal

OPENAI_API_KEY_PARAMETER_NAME = "/farm-assistant/openai-api-key"
GOOGLE_API_KEY_PARAMETER_NAME = "/farm-assistant/google-api-key"
LANGSMITH_API_KEY_PARAMETER_NAME = "/farm-assistant/langsmith-api-key"
AWS_REGION = "ap-northeast-1"
LANGSMITH_PROJECT = "farm-assistant"

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash-exp"
DEFAULT_PREFERRED_PROVIDER = "openai"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 4000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_TOOL_ROUNDS = 3

VALIDATION_TEMPERATURE = 0.2
VALIDATION_MAX_OUTPUT_TOKENS = 300

CHAT_RATE_LIMIT_MAX = 30
CHAT_RATE_LIMIT_WINDOW_MS = 60_000

FUNCTION_RESULT_MARKER = "Function result:"
SYSTEM_ACKNOWLEDGEMENT = "Understood. I will follow these instructions."

VISUALIZATION_TYPES = ("table", "chart", "metric", "comparison")
CHART_ALIASES = ("line", "bar")

Provider = Literal["openai", "gemini"]
Role = Literal["user", "assistant", "system", "tool"]
VisualizationType = Literal["table", "chart", "metric", "comparison"]
ToolCategory = Literal["weather", "market", "field", "equipment", "livestock", "operations"]
