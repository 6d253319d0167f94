"""Pydantic schemas for the farm assistant API and conversation model."""

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import DEFAULT_MAX_OUTPUT_TOKENS, DEFAULT_TEMPERATURE, Role, ToolCategory
from .visualization.models import Visualization


class Attachment(BaseModel):
    """Metadata of a user-supplied file; payloads never reach the model."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    mime_type: str = Field(alias="mimeType")
    size_bytes: int | None = Field(default=None, alias="sizeBytes", ge=0)


class ToolCall(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    call_id: str | None = Field(default=None, alias="callId")


class ToolResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    call_id: str | None = Field(default=None, alias="callId")
    success: bool
    message: str = ""
    data: Any = None
    error: str | None = None

    def to_content(self) -> str:
        """Serialize the result the way it is shown to the model."""
        payload: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        if self.error:
            payload["error"] = self.error
        return json.dumps(payload, default=str, sort_keys=True)


class ConversationTurn(BaseModel):
    """One entry of the provider-agnostic dialogue timeline."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    role: Role
    content: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list, alias="toolCalls")
    tool_result: ToolResult | None = Field(default=None, alias="toolResult")
    attachments: list[Attachment] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_role_payloads(self) -> "ConversationTurn":
        if self.tool_calls and self.role != "assistant":
            raise ValueError("Only assistant turns can carry tool calls")
        if self.tool_result is not None and self.role != "tool":
            raise ValueError("Only tool turns can carry a tool result")
        return self

    @property
    def call_id(self) -> str | None:
        return self.tool_result.call_id if self.tool_result else None

    @property
    def tool_name(self) -> str:
        return self.tool_result.name if self.tool_result else "unknown"

    def tool_content(self) -> str:
        if self.content:
            return self.content
        if self.tool_result is not None:
            return self.tool_result.to_content()
        return ""


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    attachments: list[Attachment] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_attachments(self) -> "Message":
        if self.attachments and self.role != "user":
            raise ValueError("Attachments are only supported for user messages")
        return self

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role=self.role, content=self.content, attachments=self.attachments)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[Message]
    system_prompt: str | None = Field(default=None, alias="systemPrompt")
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0, le=2)
    max_output_tokens: int = Field(
        default=DEFAULT_MAX_OUTPUT_TOKENS, alias="maxOutputTokens", ge=1, le=8192
    )
    enable_tools: bool = Field(default=True, alias="enableTools")
    tool_categories: list[ToolCategory] | None = Field(default=None, alias="toolCategories")
    data_source: str | None = Field(default=None, alias="dataSource")
    validate_response: bool = Field(default=False, alias="validateResponse")

    @field_validator("messages")
    @classmethod
    def validate_messages(cls, messages: list[Message]) -> list[Message]:
        if not messages:
            raise ValueError("messages must not be empty")
        if messages[-1].role != "user":
            raise ValueError("The last message must come from the user")
        return messages

    @property
    def user_query(self) -> str:
        return self.messages[-1].content


class ValidationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(alias="isValid")
    confidence: float = 0.5
    explanation: str = ""
    suggestions: list[str] | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: Any) -> float:
        try:
            confidence = float(value)
        except TypeError as e:
            raise ValueError(f"confidence must be a number, got {type(value).__name__}") from e
        return min(1.0, max(0.0, confidence))


class ChatResponse(BaseModel):
    message: str
    visualizations: list[Visualization] = Field(default_factory=list)
    model: str
    provider: str
    input_tokens: int | None = Field(default=None, serialization_alias="inputTokens")
    output_tokens: int | None = Field(default=None, serialization_alias="outputTokens")
    duration_seconds: float = Field(serialization_alias="durationSeconds")
    tool_calls: list[ToolCall] = Field(default_factory=list, serialization_alias="toolCalls")
    validation: ValidationResult | None = None
