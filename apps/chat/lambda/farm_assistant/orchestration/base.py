"""Orchestration interfaces for chat execution."""

from collections.abc import Sequence
from enum import Enum
from typing import Protocol

from farm_assistant.providers.base import ProviderOptions, ProviderResponse
from farm_assistant.schemas import ConversationTurn
from farm_assistant.tools.registry import ToolSpec


class OrchestrationState(str, Enum):
    NOT_STARTED = "not_started"
    TRY_PRIMARY = "try_primary"
    TRY_FALLBACK = "try_fallback"
    SUCCESS = "success"
    FAILED = "failed"


class ChatOrchestrator(Protocol):
    async def run(
        self,
        conversation: Sequence[ConversationTurn],
        tools: Sequence[ToolSpec],
        options: ProviderOptions,
    ) -> ProviderResponse:
        """Execute the conversation with the configured provider order."""
        ...
