"""Provider capability registry."""

from dataclasses import dataclass

from .constants import DEFAULT_GEMINI_MODEL, DEFAULT_OPENAI_MODEL, Provider


@dataclass(frozen=True)
class ProviderCapability:
    provider: Provider
    default_model: str
    max_tools_per_request: int
    supports_system_role: bool
    supports_tool_call_ids: bool


PROVIDER_CAPABILITIES: dict[str, ProviderCapability] = {
    "openai": ProviderCapability(
        provider="openai",
        default_model=DEFAULT_OPENAI_MODEL,
        max_tools_per_request=128,
        supports_system_role=True,
        supports_tool_call_ids=True,
    ),
    # The legacy Gemini path has no system role and correlates results positionally.
    "gemini": ProviderCapability(
        provider="gemini",
        default_model=DEFAULT_GEMINI_MODEL,
        max_tools_per_request=64,
        supports_system_role=False,
        supports_tool_call_ids=False,
    ),
}
ALLOWED_PROVIDERS = set(PROVIDER_CAPABILITIES)
