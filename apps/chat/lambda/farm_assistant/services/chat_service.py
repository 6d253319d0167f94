"""Application service for chat requests."""

import logging
import time
from dataclasses import replace

from farm_assistant.constants import DEFAULT_MAX_TOOL_ROUNDS, DEFAULT_REQUEST_TIMEOUT_SECONDS
from farm_assistant.orchestration.base import ChatOrchestrator
from farm_assistant.prompts import TOOL_RESULTS_PROMPT, build_system_prompt
from farm_assistant.providers.base import ProviderOptions, ProviderResponse, ToolCallRequest
from farm_assistant.sanitizer import sanitize_response_content
from farm_assistant.schemas import (
    ChatRequest,
    ChatResponse,
    ConversationTurn,
    ToolCall,
    ToolResult,
    ValidationResult,
)
from farm_assistant.tools.dispatcher import ToolDispatcher
from farm_assistant.tools.registry import ToolRegistry, ToolSpec
from farm_assistant.visualization.parser import extract_visualizations

from .response_validator import ResponseValidator

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(
        self,
        orchestrator: ChatOrchestrator,
        registry: ToolRegistry,
        dispatcher: ToolDispatcher,
        validator: ResponseValidator | None = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._orchestrator = orchestrator
        self._registry = registry
        self._dispatcher = dispatcher
        self._validator = validator
        self._max_tool_rounds = max_tool_rounds
        self._request_timeout_seconds = request_timeout_seconds

    def _select_tools(self, request: ChatRequest) -> list[ToolSpec]:
        if not request.enable_tools:
            return []
        return self._registry.list_tools(
            request.tool_categories,
            include_data_source_tools=bool(request.data_source),
        )

    async def _run_tool_call(self, call: ToolCallRequest) -> ToolResult:
        outcome = await self._dispatcher.dispatch(call.name, call.arguments)
        return ToolResult(
            name=call.name,
            call_id=call.call_id,
            success=outcome.success,
            message=outcome.message,
            data=outcome.data,
            error=None if outcome.success else outcome.message,
        )

    async def handle_chat(self, request: ChatRequest) -> ChatResponse:
        start = time.time()
        message_count = len(request.messages)
        logger.info("Chat request received", extra={"message_count": message_count})

        conversation: list[ConversationTurn] = [message.to_turn() for message in request.messages]
        tools = self._select_tools(request)
        options = ProviderOptions(
            max_output_units=request.max_output_tokens,
            temperature=request.temperature,
            enable_tools=bool(tools),
            timeout_seconds=self._request_timeout_seconds,
            system_prompt=build_system_prompt(request.data_source, request.system_prompt),
        )

        executed_calls: list[ToolCall] = []
        tool_results: list[ToolResult] = []
        input_tokens = 0
        output_tokens = 0

        round_options = options
        for round_index in range(self._max_tool_rounds + 1):
            if round_index == self._max_tool_rounds:
                round_options = replace(round_options, enable_tools=False)
            response = await self._orchestrator.run(conversation, tools, round_options)
            input_tokens += response.usage.prompt_units
            output_tokens += response.usage.completion_units

            if not response.tool_calls or not round_options.enable_tools:
                break

            conversation.append(
                ConversationTurn(
                    role="assistant",
                    content=response.text,
                    tool_calls=[call.to_tool_call() for call in response.tool_calls],
                )
            )
            # Calls run one at a time in emission order.
            for call in response.tool_calls:
                result = await self._run_tool_call(call)
                executed_calls.append(call.to_tool_call())
                tool_results.append(result)
                conversation.append(ConversationTurn(role="tool", tool_result=result))

            logger.info(
                "Tool round completed",
                extra={"round": round_index + 1, "tool_call_count": len(response.tool_calls)},
            )
            round_options = replace(
                round_options,
                system_prompt=f"{options.system_prompt}\n\n{TOOL_RESULTS_PROMPT}",
            )

        validation = None
        if request.validate_response and self._validator is not None:
            validation = await self._validator.validate(request.user_query, response, tool_results)
            if not validation.is_valid:
                corrected = await self._validator.generate_corrected_response(
                    conversation,
                    response,
                    validation,
                    tools,
                    replace(round_options, enable_tools=False),
                )
                input_tokens += corrected.usage.prompt_units
                output_tokens += corrected.usage.completion_units
                response = corrected

        return self._build_response(
            request,
            response,
            executed_calls,
            tool_results,
            validation,
            input_tokens,
            output_tokens,
            time.time() - start,
        )

    def _build_response(
        self,
        request: ChatRequest,
        response: ProviderResponse,
        executed_calls: list[ToolCall],
        tool_results: list[ToolResult],
        validation: ValidationResult | None,
        input_tokens: int,
        output_tokens: int,
        elapsed_seconds: float,
    ) -> ChatResponse:
        extraction = extract_visualizations(response.text, tool_results, request.user_query)
        message = sanitize_response_content(extraction.cleaned_text)
        logger.info(
            "Chat response generated",
            extra={
                "provider": response.provider,
                "model": response.model,
                "tool_call_count": len(executed_calls),
                "visualization_count": len(extraction.visualizations),
                "response_length": len(message),
            },
        )
        return ChatResponse(
            message=message,
            visualizations=extraction.visualizations,
            model=response.model,
            provider=response.provider,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            duration_seconds=round(elapsed_seconds, 2),
            tool_calls=executed_calls,
            validation=validation,
        )
