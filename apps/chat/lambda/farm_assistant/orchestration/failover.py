"""Primary/fallback provider orchestration."""

import logging
from collections.abc import Mapping, Sequence

from farm_assistant.errors import OrchestrationError, ProviderError
from farm_assistant.orchestration.base import ChatOrchestrator, OrchestrationState
from farm_assistant.providers.base import ChatProvider, ProviderOptions, ProviderResponse
from farm_assistant.schemas import ConversationTurn
from farm_assistant.tools.registry import ToolSpec

logger = logging.getLogger(__name__)


def build_provider_order(
    preferred: str, providers: Mapping[str, ChatProvider]
) -> tuple[ChatProvider, ChatProvider | None]:
    """Return (primary, fallback) from the available providers."""
    if not providers:
        raise RuntimeError("No LLM providers configured")
    if preferred in providers:
        primary = providers[preferred]
    else:
        primary = next(iter(providers.values()))
    fallback = next((p for p in providers.values() if p is not primary), None)
    return primary, fallback


class FailoverChatOrchestrator(ChatOrchestrator):
    """Try the primary provider once, then the fallback once.

    An empty primary answer (no text, no tool calls) counts as a failure. The
    fallback's answer is returned as-is, empty or not.
    """

    def __init__(self, primary: ChatProvider, fallback: ChatProvider | None = None) -> None:
        self._primary = primary
        self._fallback = fallback
        self.last_state = OrchestrationState.NOT_STARTED

    async def run(
        self,
        conversation: Sequence[ConversationTurn],
        tools: Sequence[ToolSpec],
        options: ProviderOptions,
    ) -> ProviderResponse:
        self.last_state = OrchestrationState.TRY_PRIMARY
        last_error: ProviderError | None = None
        try:
            response = await self._primary.execute(conversation, tools, options)
        except ProviderError as e:
            logger.warning(
                "Primary provider failed",
                extra={"provider": self._primary.name, "error": str(e)},
            )
            last_error = e
        else:
            if not response.is_empty:
                self.last_state = OrchestrationState.SUCCESS
                return response
            logger.warning(
                "Primary provider returned an empty response",
                extra={"provider": self._primary.name, "model": response.model},
            )

        if self._fallback is None:
            self.last_state = OrchestrationState.FAILED
            raise OrchestrationError("No fallback provider is configured", last_error)

        self.last_state = OrchestrationState.TRY_FALLBACK
        try:
            response = await self._fallback.execute(conversation, tools, options)
        except ProviderError as e:
            self.last_state = OrchestrationState.FAILED
            logger.error(
                "Fallback provider failed",
                extra={"provider": self._fallback.name, "error": str(e)},
            )
            raise OrchestrationError("All LLM providers failed", e) from e

        self.last_state = OrchestrationState.SUCCESS
        logger.info(
            "Fallback provider answered",
            extra={"provider": self._fallback.name, "model": response.model},
        )
        return response
