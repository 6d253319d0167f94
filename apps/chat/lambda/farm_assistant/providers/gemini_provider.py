"""Gemini provider implementation for chat requests."""

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from langchain_core.runnables import Runnable

from farm_assistant.errors import ProviderError
from farm_assistant.message_mappers import build_gemini_contents
from farm_assistant.provider_registry import PROVIDER_CAPABILITIES
from farm_assistant.schemas import ConversationTurn
from farm_assistant.tools.registry import ToolSpec
from farm_assistant.tools.schema_adapter import build_gemini_tools

from .base import (
    ProviderOptions,
    ProviderResponse,
    ToolCallRequest,
    Usage,
    cap_tool_declarations,
)

logger = logging.getLogger(__name__)


class GeminiChatProvider:
    name = "gemini"

    def __init__(
        self,
        get_gemini_runnable: Callable[[], Runnable[dict[str, Any], Any]],
        model: str | None = None,
    ) -> None:
        self._get_gemini_runnable = get_gemini_runnable
        self._capability = PROVIDER_CAPABILITIES["gemini"]
        self._model = model or self._capability.default_model

    async def execute(
        self,
        conversation: Sequence[ConversationTurn],
        tools: Sequence[ToolSpec],
        options: ProviderOptions,
    ) -> ProviderResponse:
        contents = build_gemini_contents(conversation, options.system_prompt)
        config: dict[str, Any] = {
            "temperature": options.temperature,
            "max_output_tokens": options.max_output_units,
        }
        if options.enable_tools and tools:
            declared = cap_tool_declarations(
                tools, self._capability.max_tools_per_request, self.name
            )
            config["tools"] = build_gemini_tools(declared)
            # Tool calls are dispatched by the chat service, never by the SDK.
            config["automatic_function_calling"] = {"disable": True}

        start = time.time()
        try:
            response = await asyncio.wait_for(
                self._get_gemini_runnable().ainvoke(
                    {"model": self._model, "contents": contents, "config": config},
                    config={
                        "run_name": "farm_assistant_request",
                        "tags": ["farm-assistant", self._model],
                        "metadata": {"message_count": len(contents)},
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

        candidates = getattr(response, "candidates", None)
        if not candidates:
            raise ProviderError(self.name, "response contained no candidates")
        candidate_content = getattr(candidates[0], "content", None)
        parts = (getattr(candidate_content, "parts", None) or []) if candidate_content else []

        texts: list[str] = []
        tool_calls: list[ToolCallRequest] = []
        for part in parts:
            if getattr(part, "text", None):
                texts.append(part.text)
            function_call = getattr(part, "function_call", None)
            if function_call is not None:
                parsed = self._parse_function_call(function_call, len(tool_calls))
                if parsed is not None:
                    tool_calls.append(parsed)
        content = "".join(texts)

        usage_metadata = getattr(response, "usage_metadata", None)
        usage = Usage()
        if usage_metadata is not None:
            usage = Usage(
                prompt_units=usage_metadata.prompt_token_count or 0,
                completion_units=usage_metadata.candidates_token_count or 0,
                total_units=usage_metadata.total_token_count or 0,
            )

        model = getattr(response, "model_version", None) or self._model
        logger.info(
            "Chat response generated",
            extra={
                "gemini_duration_ms": duration_ms,
                "model": model,
                "usage_prompt_tokens": usage.prompt_units,
                "usage_completion_tokens": usage.completion_units,
                "response_length": len(content),
                "tool_call_count": len(tool_calls),
            },
        )
        return ProviderResponse(
            text=content,
            model=model,
            tool_calls=tuple(tool_calls),
            usage=usage,
            provider=self.name,
            duration_seconds=round(duration_ms / 1000, 2),
        )

    def _parse_function_call(self, function_call: Any, index: int) -> ToolCallRequest | None:
        args = function_call.args if function_call.args is not None else {}
        if not isinstance(args, Mapping):
            logger.warning(
                "Function arguments are not an object; dropping tool call",
                extra={"tool_name": function_call.name},
            )
            return None
        call_id = getattr(function_call, "id", None) or f"gemini_call_{index}"
        return ToolCallRequest(name=function_call.name, arguments=dict(args), call_id=call_id)
