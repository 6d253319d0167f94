"""LangGraph-based failover orchestration for chat execution."""

import logging
from collections.abc import Sequence
from typing import Literal, NotRequired, TypedDict, cast

from langgraph.graph import END, START, StateGraph

from farm_assistant.errors import OrchestrationError, ProviderError
from farm_assistant.providers.base import ChatProvider, ProviderOptions, ProviderResponse
from farm_assistant.schemas import ConversationTurn
from farm_assistant.tools.registry import ToolSpec

from .base import ChatOrchestrator, OrchestrationState

logger = logging.getLogger(__name__)


class ChatGraphState(TypedDict):
    conversation: Sequence[ConversationTurn]
    tools: Sequence[ToolSpec]
    options: ProviderOptions
    status: OrchestrationState
    response: NotRequired[ProviderResponse]
    error: NotRequired[ProviderError]


class LangGraphChatOrchestrator(ChatOrchestrator):
    def __init__(self, primary: ChatProvider, fallback: ChatProvider | None = None) -> None:
        self._primary = primary
        self._fallback = fallback
        graph = StateGraph(ChatGraphState)
        graph.add_node("try_primary", self._try_primary)
        graph.add_node("try_fallback", self._try_fallback)
        graph.add_node("failed", self._failed)
        graph.add_edge(START, "try_primary")
        graph.add_conditional_edges(
            "try_primary",
            self._route_after_primary,
            {"try_fallback": "try_fallback", "failed": "failed", "end": END},
        )
        graph.add_conditional_edges(
            "try_fallback", self._route_after_fallback, {"failed": "failed", "end": END}
        )
        graph.add_edge("failed", END)
        self._graph = graph.compile()

    async def _try_primary(self, state: ChatGraphState) -> dict[str, object]:
        try:
            response = await self._primary.execute(
                state["conversation"], state["tools"], state["options"]
            )
        except ProviderError as e:
            logger.warning(
                "Primary provider failed", extra={"provider": self._primary.name, "error": str(e)}
            )
            return {"status": OrchestrationState.TRY_FALLBACK, "error": e}

        if response.is_empty:
            logger.warning(
                "Primary provider returned an empty response",
                extra={"provider": self._primary.name, "model": response.model},
            )
            return {"status": OrchestrationState.TRY_FALLBACK}
        return {"status": OrchestrationState.SUCCESS, "response": response}

    def _route_after_primary(
        self, state: ChatGraphState
    ) -> Literal["try_fallback", "failed", "end"]:
        if state["status"] == OrchestrationState.SUCCESS:
            return "end"
        if self._fallback is None:
            return "failed"
        return "try_fallback"

    async def _try_fallback(self, state: ChatGraphState) -> dict[str, object]:
        fallback = cast("ChatProvider", self._fallback)
        try:
            response = await fallback.execute(state["conversation"], state["tools"], state["options"])
        except ProviderError as e:
            logger.error(
                "Fallback provider failed", extra={"provider": fallback.name, "error": str(e)}
            )
            return {"status": OrchestrationState.FAILED, "error": e}
        return {"status": OrchestrationState.SUCCESS, "response": response}

    def _route_after_fallback(self, state: ChatGraphState) -> Literal["failed", "end"]:
        if state["status"] == OrchestrationState.SUCCESS:
            return "end"
        return "failed"

    def _failed(self, state: ChatGraphState) -> dict[str, object]:
        error = state.get("error")
        logger.error(
            "No provider produced a response",
            extra={
                "primary": self._primary.name,
                "fallback": self._fallback.name if self._fallback else None,
                "error": str(error) if error else None,
            },
        )
        return {"status": OrchestrationState.FAILED}

    async def run(
        self,
        conversation: Sequence[ConversationTurn],
        tools: Sequence[ToolSpec],
        options: ProviderOptions,
    ) -> ProviderResponse:
        initial_state: ChatGraphState = {
            "conversation": conversation,
            "tools": tools,
            "options": options,
            "status": OrchestrationState.TRY_PRIMARY,
        }
        result = cast("ChatGraphState", await self._graph.ainvoke(initial_state))
        response = result.get("response")
        if result["status"] != OrchestrationState.SUCCESS or response is None:
            raise OrchestrationError("All LLM providers failed", result.get("error"))
        return response
