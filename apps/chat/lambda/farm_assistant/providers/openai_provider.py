"""OpenAI provider implementation for chat requests."""

import asyncio
import json
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from langchain_core.runnables import Runnable

from farm_assistant.errors import ProviderError
from farm_assistant.message_mappers import build_openai_messages
from farm_assistant.provider_registry import PROVIDER_CAPABILITIES
from farm_assistant.schemas import ConversationTurn
from farm_assistant.tools.registry import ToolSpec
from farm_assistant.tools.schema_adapter import build_openai_tools

from .base import (
    ProviderOptions,
    ProviderResponse,
    ToolCallRequest,
    Usage,
    cap_tool_declarations,
)

logger = logging.getLogger(__name__)


class OpenAIChatProvider:
    name = "openai"

    def __init__(
        self,
        get_openai_runnable: Callable[[], Runnable[dict[str, Any], Any]],
        model: str | None = None,
    ) -> None:
        self._get_openai_runnable = get_openai_runnable
        self._capability = PROVIDER_CAPABILITIES["openai"]
        self._model = model or self._capability.default_model

    async def execute(
        self,
        conversation: Sequence[ConversationTurn],
        tools: Sequence[ToolSpec],
        options: ProviderOptions,
    ) -> ProviderResponse:
        messages = build_openai_messages(conversation, options.system_prompt)
        request_params: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "max_tokens": options.max_output_units,
            "temperature": options.temperature,
        }
        if options.enable_tools and tools:
            declared = cap_tool_declarations(
                tools, self._capability.max_tools_per_request, self.name
            )
            request_params["tools"] = build_openai_tools(declared)
            request_params["tool_choice"] = "auto"

        start = time.time()
        try:
            response = await asyncio.wait_for(
                self._get_openai_runnable().ainvoke(
                    request_params,
                    config={
                        "run_name": "farm_assistant_request",
                        "tags": ["farm-assistant", self._model],
                        "metadata": {
                            "message_count": len(messages),
                            "tool_count": len(request_params.get("tools", [])),
                        },
                    },
                ),
                timeout=options.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(
                self.name, f"request timed out after {options.timeout_seconds}s", e
            ) from e
        except Exception as e:
            raise ProviderError(self.name, str(e) or type(e).__name__, e) from e
        duration_ms = int((time.time() - start) * 1000)

        choices = getattr(response, "choices", None)
        if not choices:
            raise ProviderError(self.name, "response contained no choices")
        message = choices[0].message
        content = message.content or ""
        tool_calls = tuple(self._parse_tool_calls(message.tool_calls or []))

        usage = Usage()
        if response.usage:
            usage = Usage(
                prompt_units=response.usage.prompt_tokens or 0,
                completion_units=response.usage.completion_tokens or 0,
                total_units=response.usage.total_tokens or 0,
            )

        logger.info(
            "Chat response generated",
            extra={
                "openai_duration_ms": duration_ms,
                "model": response.model,
                "usage_prompt_tokens": usage.prompt_units,
                "usage_completion_tokens": usage.completion_units,
                "response_length": len(content),
                "tool_call_count": len(tool_calls),
            },
        )
        return ProviderResponse(
            text=content,
            model=response.model or self._model,
            tool_calls=tool_calls,
            usage=usage,
            provider=self.name,
            duration_seconds=round(duration_ms / 1000, 2),
        )

    def _parse_tool_calls(self, raw_calls: Sequence[Any]) -> list[ToolCallRequest]:
        parsed: list[ToolCallRequest] = []
        for raw in raw_calls:
            if getattr(raw, "type", "function") != "function":
                continue
            try:
                arguments = json.loads(raw.function.arguments or "{}")
            except (TypeError, ValueError):
                logger.warning(
                    "Failed to parse function arguments; dropping tool call",
                    extra={"tool_name": raw.function.name, "call_id": raw.id},
                )
                continue
            if not isinstance(arguments, dict):
                logger.warning(
                    "Function arguments are not an object; dropping tool call",
                    extra={"tool_name": raw.function.name, "call_id": raw.id},
                )
                continue
            parsed.append(ToolCallRequest(name=raw.function.name, arguments=arguments, call_id=raw.id))
        return parsed
