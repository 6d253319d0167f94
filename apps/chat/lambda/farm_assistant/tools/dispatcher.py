"""Boundary between model-issued tool calls and the tool implementations."""

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolOutcome(BaseModel):
    success: bool
    message: str = ""
    data: Any = None


ToolHandler = Callable[[dict[str, Any]], Awaitable[ToolOutcome | Mapping[str, Any]]]


class ToolDispatcher(Protocol):
    async def dispatch(self, name: str, arguments: dict[str, Any]) -> ToolOutcome:
        """Run one tool call and report its outcome; never raises."""
        ...


class RegistryToolDispatcher:
    """Validates arguments against the registry before calling a handler."""

    def __init__(self, registry: ToolRegistry, handlers: Mapping[str, ToolHandler]) -> None:
        self._registry = registry
        self._handlers = handlers

    async def dispatch(self, name: str, arguments: dict[str, Any]) -> ToolOutcome:
        if name not in self._registry:
            logger.warning("Model requested an unknown tool", extra={"tool_name": name})
            return ToolOutcome(success=False, message=f"Unknown tool: {name}")

        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("No handler configured for tool", extra={"tool_name": name})
            return ToolOutcome(success=False, message=f"Tool {name} is not available right now")

        try:
            validated = self._registry.validate_arguments(name, arguments)
        except ValidationError as e:
            logger.warning(
                "Tool arguments failed validation",
                extra={"tool_name": name, "error_count": e.error_count()},
            )
            return ToolOutcome(success=False, message=f"Invalid arguments for {name}: {e}")

        start = time.time()
        try:
            result = await handler(validated)
        except Exception as e:
            logger.exception("Tool handler failed", extra={"tool_name": name})
            return ToolOutcome(success=False, message=f"Failed to execute {name}: {e}")

        try:
            outcome = (
                result if isinstance(result, ToolOutcome) else ToolOutcome.model_validate(result)
            )
        except ValidationError as e:
            logger.warning(
                "Tool handler returned a malformed result",
                extra={"tool_name": name, "error_count": e.error_count()},
            )
            return ToolOutcome(success=False, message=f"Tool {name} returned an invalid result")
        logger.info(
            "Tool executed",
            extra={
                "tool_name": name,
                "tool_duration_ms": int((time.time() - start) * 1000),
                "success": outcome.success,
            },
        )
        return outcome
