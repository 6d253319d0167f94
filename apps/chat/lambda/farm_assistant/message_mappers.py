"""Conversion helpers between the conversation model and provider-specific formats."""

import json
import logging
from collections import deque
from collections.abc import Sequence
from typing import Any

from .constants import FUNCTION_RESULT_MARKER, SYSTEM_ACKNOWLEDGEMENT
from .schemas import Attachment, ConversationTurn, ToolCall

logger = logging.getLogger(__name__)


def _fallback_call_id(turn_index: int, call_index: int) -> str:
    return f"call_{turn_index}_{call_index}"


def _dump_arguments(arguments: dict[str, Any]) -> str:
    return json.dumps(arguments, sort_keys=True, default=str)


def format_attachment_annotations(attachments: Sequence[Attachment]) -> str:
    annotations = []
    for attachment in attachments:
        details = attachment.mime_type
        if attachment.size_bytes is not None:
            details = f"{details}, {attachment.size_bytes} bytes"
        annotations.append(f"[Attached file: {attachment.name} ({details})]")
    return "\n".join(annotations)


def _with_attachments(turn: ConversationTurn) -> str:
    annotations = format_attachment_annotations(turn.attachments)
    if not annotations:
        return turn.content
    if not turn.content:
        return annotations
    return f"{turn.content}\n\n{annotations}"


def _openai_tool_call(call: ToolCall, call_id: str) -> dict[str, Any]:
    return {
        "id": call_id,
        "type": "function",
        "function": {"name": call.name, "arguments": _dump_arguments(call.arguments)},
    }


def build_openai_messages(
    conversation: Sequence[ConversationTurn],
    system_prompt: str | None = None,
) -> list[dict[str, Any]]:
    """Convert turns to Chat Completions messages, pairing tool results with call ids.

    Pairing is a single forward pass: every emitted call id is queued, a tool
    turn with a pending explicit id consumes it, and a tool turn without an id
    takes the oldest pending one. This positional matching assumes results
    arrive in the order the calls were emitted; it is a compatibility shim for
    history that was stored without ids.
    """
    messages: list[dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})

    pending: deque[str] = deque()
    for turn_index, turn in enumerate(conversation):
        if turn.role == "assistant" and turn.tool_calls:
            descriptors = []
            for call_index, call in enumerate(turn.tool_calls):
                call_id = call.call_id or _fallback_call_id(turn_index, call_index)
                pending.append(call_id)
                descriptors.append(_openai_tool_call(call, call_id))
            messages.append(
                {"role": "assistant", "content": turn.content or None, "tool_calls": descriptors}
            )
        elif turn.role == "tool":
            call_id = _claim_call_id(pending, turn.call_id)
            if call_id is None:
                logger.warning(
                    "Tool result has no matching tool call; sending it as user text",
                    extra={"tool_name": turn.tool_name, "turn_index": turn_index},
                )
                messages.append(
                    {
                        "role": "user",
                        "content": f"{FUNCTION_RESULT_MARKER} {turn.tool_name}: {turn.tool_content()}",
                    }
                )
                continue
            messages.append({"role": "tool", "tool_call_id": call_id, "content": turn.tool_content()})
        elif turn.role == "user":
            messages.append({"role": "user", "content": _with_attachments(turn)})
        else:
            messages.append({"role": turn.role, "content": turn.content})

    return messages


def _claim_call_id(pending: deque[str], explicit_id: str | None) -> str | None:
    if explicit_id is None:
        return pending.popleft() if pending else None
    if explicit_id in pending:
        pending.remove(explicit_id)
        return explicit_id
    return None


def build_gemini_contents(
    conversation: Sequence[ConversationTurn],
    system_prompt: str | None = None,
) -> list[dict[str, Any]]:
    """Convert turns to Gemini ``contents``; only ``user`` and ``model`` roles exist."""
    contents: list[dict[str, Any]] = []
    if system_prompt:
        contents.append({"role": "user", "parts": [{"text": system_prompt}]})
        contents.append({"role": "model", "parts": [{"text": SYSTEM_ACKNOWLEDGEMENT}]})

    for turn in conversation:
        if turn.role == "assistant":
            text = turn.content
            calls = "\n".join(
                f"[Called function {call.name} with {_dump_arguments(call.arguments)}]"
                for call in turn.tool_calls
            )
            if calls:
                text = f"{text}\n{calls}" if text else calls
            contents.append({"role": "model", "parts": [{"text": text}]})
        elif turn.role == "tool":
            text = f"Function result ({turn.tool_name}): {turn.tool_content()}"
            contents.append({"role": "user", "parts": [{"text": text}]})
        else:
            contents.append({"role": "user", "parts": [{"text": _with_attachments(turn)}]})

    return contents
