"""Provider interfaces and shared response model."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from farm_assistant.constants import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_TEMPERATURE,
)
from farm_assistant.schemas import ConversationTurn, ToolCall
from farm_assistant.tools.registry import ToolSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Usage:
    prompt_units: int = 0
    completion_units: int = 0
    total_units: int = 0


@dataclass(frozen=True)
class ToolCallRequest:
    name: str
    arguments: dict[str, Any]
    call_id: str

    def to_tool_call(self) -> ToolCall:
        return ToolCall(name=self.name, arguments=self.arguments, call_id=self.call_id)


@dataclass(frozen=True)
class ProviderResponse:
    text: str
    model: str
    tool_calls: tuple[ToolCallRequest, ...] = ()
    usage: Usage = field(default_factory=Usage)
    provider: str = ""
    duration_seconds: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and not self.tool_calls


@dataclass(frozen=True)
class ProviderOptions:
    max_output_units: int = DEFAULT_MAX_OUTPUT_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    enable_tools: bool = True
    timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    system_prompt: str | None = None


class ChatProvider(Protocol):
    name: str

    async def execute(
        self,
        conversation: Sequence[ConversationTurn],
        tools: Sequence[ToolSpec],
        options: ProviderOptions,
    ) -> ProviderResponse:
        """Run one request/response cycle; raises ``ProviderError`` on failure."""
        ...


def cap_tool_declarations(
    tools: Sequence[ToolSpec], max_tools: int, provider: str
) -> Sequence[ToolSpec]:
    """Keep declaration order; drop the tail beyond the provider's limit."""
    if len(tools) <= max_tools:
        return tools
    logger.warning(
        "Tool declarations exceed provider limit; truncating",
        extra={"provider": provider, "tool_count": len(tools), "max_tools": max_tools},
    )
    return tools[:max_tools]
