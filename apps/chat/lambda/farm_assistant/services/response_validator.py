"""Second-opinion check of an answer against the user's intent."""

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import replace

from pydantic import ValidationError

from farm_assistant.constants import VALIDATION_MAX_OUTPUT_TOKENS, VALIDATION_TEMPERATURE
from farm_assistant.errors import OrchestrationError
from farm_assistant.orchestration.base import ChatOrchestrator
from farm_assistant.prompts import (
    CORRECTION_NOTICE,
    VALIDATION_SYSTEM_PROMPT,
    build_correction_prompt,
    build_validation_prompt,
)
from farm_assistant.providers.base import ProviderOptions, ProviderResponse
from farm_assistant.schemas import ConversationTurn, ToolResult, ValidationResult
from farm_assistant.tools.registry import ToolSpec

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def _fail_open(explanation: str) -> ValidationResult:
    return ValidationResult(is_valid=True, confidence=0.5, explanation=explanation)


class ResponseValidator:
    """Advisory only: any failure here reports the answer as valid."""

    def __init__(self, orchestrator: ChatOrchestrator) -> None:
        self._orchestrator = orchestrator

    async def validate(
        self,
        user_query: str,
        response: ProviderResponse,
        tool_results: Sequence[ToolResult],
    ) -> ValidationResult:
        prompt = build_validation_prompt(
            user_query,
            response.text,
            [{"name": call.name, "args": call.arguments} for call in response.tool_calls],
            tool_results,
        )
        options = ProviderOptions(
            max_output_units=VALIDATION_MAX_OUTPUT_TOKENS,
            temperature=VALIDATION_TEMPERATURE,
            enable_tools=False,
            system_prompt=VALIDATION_SYSTEM_PROMPT,
        )
        try:
            validation_response = await self._orchestrator.run(
                [ConversationTurn(role="user", content=prompt)], [], options
            )
        except OrchestrationError:
            logger.warning("Validation call failed; assuming response is valid", exc_info=True)
            return _fail_open("Validation system error, assuming response is valid")

        match = _JSON_OBJECT.search(validation_response.text)
        if not match:
            logger.warning("Could not find validation JSON; assuming response is valid")
            return _fail_open("Validation parsing failed, assuming response is valid")
        try:
            result = ValidationResult.model_validate(json.loads(match.group(0)))
        except (ValueError, ValidationError):
            logger.warning("Could not parse validation JSON; assuming response is valid")
            return _fail_open("Validation parsing failed, assuming response is valid")

        logger.info(
            "Validation completed",
            extra={"is_valid": result.is_valid, "confidence": result.confidence},
        )
        return result

    async def generate_corrected_response(
        self,
        conversation: Sequence[ConversationTurn],
        original: ProviderResponse,
        validation: ValidationResult,
        tools: Sequence[ToolSpec],
        options: ProviderOptions,
    ) -> ProviderResponse:
        original_query = next(
            (turn.content for turn in reversed(conversation) if turn.role == "user"), ""
        )
        correction_turns = [
            *conversation,
            ConversationTurn(role="assistant", content=original.text),
            ConversationTurn(
                role="user", content=build_correction_prompt(validation, original_query)
            ),
        ]
        correction_options = replace(
            options, system_prompt=f"{options.system_prompt or ''}\n\n{CORRECTION_NOTICE}"
        )
        logger.info("Generating corrected response based on validation feedback")
        return await self._orchestrator.run(correction_turns, tools, correction_options)
