import json
import unittest
from collections.abc import Sequence
from typing import Any

from farm_assistant.errors import OrchestrationError
from farm_assistant.providers.base import ProviderOptions, ProviderResponse, ToolCallRequest, Usage
from farm_assistant.schemas import ChatRequest, ConversationTurn, ValidationResult
from farm_assistant.services.chat_service import ChatService
from farm_assistant.tools.catalog import build_default_registry
from farm_assistant.tools.dispatcher import ToolOutcome
from farm_assistant.tools.registry import ToolSpec


class ScriptedOrchestrator:
    """Returns queued responses and records what each call received."""

    def __init__(self, responses: list[ProviderResponse]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[list[ConversationTurn], list[ToolSpec], ProviderOptions]] = []

    async def run(
        self,
        conversation: Sequence[ConversationTurn],
        tools: Sequence[ToolSpec],
        options: ProviderOptions,
    ) -> ProviderResponse:
        self.calls.append((list(conversation), list(tools), options))
        return self._responses.pop(0)


class StubDispatcher:
    def __init__(self, outcomes: dict[str, ToolOutcome]) -> None:
        self._outcomes = outcomes
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def dispatch(self, name: str, arguments: dict[str, Any]) -> ToolOutcome:
        self.calls.append((name, arguments))
        return self._outcomes[name]


class StubValidator:
    def __init__(self, result: ValidationResult, corrected: ProviderResponse | None = None) -> None:
        self._result = result
        self._corrected = corrected
        self.corrections = 0

    async def validate(self, user_query: str, response: ProviderResponse, tool_results: Any) -> ValidationResult:
        return self._result

    async def generate_corrected_response(self, *args: Any) -> ProviderResponse:
        self.corrections += 1
        assert self._corrected is not None
        return self._corrected


def _text(text: str) -> ProviderResponse:
    return ProviderResponse(
        text=text, model="gpt-4o-mini", provider="openai", usage=Usage(prompt_units=10, completion_units=5)
    )


def _calls(*calls: ToolCallRequest) -> ProviderResponse:
    return ProviderResponse(
        text="", model="gpt-4o-mini", provider="openai", tool_calls=calls, usage=Usage(prompt_units=7, completion_units=3)
    )


def _request(content: str, **kwargs: Any) -> ChatRequest:
    return ChatRequest(messages=[{"role": "user", "content": content}], **kwargs)


class ChatServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.registry = build_default_registry()

    async def test_plain_answer_without_tools(self) -> None:
        orchestrator = ScriptedOrchestrator([_text("Plant after the last frost.")])
        service = ChatService(orchestrator, self.registry, StubDispatcher({}))

        response = await service.handle_chat(_request("When should I plant maize?"))

        self.assertEqual(response.message, "Plant after the last frost.")
        self.assertEqual(response.provider, "openai")
        self.assertEqual(response.input_tokens, 10)
        self.assertEqual(response.output_tokens, 5)
        self.assertEqual(response.tool_calls, [])
        self.assertIsNone(response.validation)
        _, tools, options = orchestrator.calls[0]
        self.assertTrue(options.enable_tools)
        self.assertIn("precision agriculture", options.system_prompt)
        self.assertTrue(tools)

    async def test_failed_tool_result_is_fed_back_and_not_visualized(self) -> None:
        orchestrator = ScriptedOrchestrator(
            [
                _calls(ToolCallRequest(name="getCurrentWeather", arguments={}, call_id="call_1")),
                _text("I need your location to check the weather."),
            ]
        )
        dispatcher = StubDispatcher(
            {"getCurrentWeather": ToolOutcome(success=False, message="location required")}
        )
        service = ChatService(orchestrator, self.registry, dispatcher)

        response = await service.handle_chat(_request("What's the weather?"))

        self.assertEqual(dispatcher.calls, [("getCurrentWeather", {})])
        second_conversation = orchestrator.calls[1][0]
        assistant_turn, tool_turn = second_conversation[-2:]
        self.assertEqual(assistant_turn.role, "assistant")
        self.assertEqual(assistant_turn.tool_calls[0].call_id, "call_1")
        self.assertEqual(tool_turn.role, "tool")
        self.assertEqual(tool_turn.call_id, "call_1")
        self.assertFalse(tool_turn.tool_result.success)
        self.assertEqual(json.loads(tool_turn.tool_content())["message"], "location required")

        self.assertEqual(response.message, "I need your location to check the weather.")
        self.assertFalse(any(v.type == "metric" for v in response.visualizations))
        self.assertEqual([c.name for c in response.tool_calls], ["getCurrentWeather"])
        self.assertEqual(response.input_tokens, 17)

    async def test_tool_calls_run_in_emission_order(self) -> None:
        orchestrator = ScriptedOrchestrator(
            [
                _calls(
                    ToolCallRequest(name="getFields", arguments={}, call_id="a"),
                    ToolCallRequest(name="getEquipment", arguments={}, call_id="b"),
                ),
                _text("You have two fields and one tractor."),
            ]
        )
        dispatcher = StubDispatcher(
            {
                "getFields": ToolOutcome(success=True, data={"fields": [{"name": "North", "area": 10}]}),
                "getEquipment": ToolOutcome(success=True, data={"equipment": [{"name": "Tractor"}]}),
            }
        )
        service = ChatService(orchestrator, self.registry, dispatcher)

        response = await service.handle_chat(
            _request("Show my fields and equipment", dataSource="johndeere")
        )

        self.assertEqual([name for name, _ in dispatcher.calls], ["getFields", "getEquipment"])
        tool_turns = [t for t in orchestrator.calls[1][0] if t.role == "tool"]
        self.assertEqual([t.call_id for t in tool_turns], ["a", "b"])
        self.assertEqual([v.title for v in response.visualizations], ["Your Fields", "Farm Summary", "Your Equipment"])

    async def test_last_round_disables_tools(self) -> None:
        loop_call = _calls(ToolCallRequest(name="getCurrentWeather", arguments={}, call_id="c"))
        orchestrator = ScriptedOrchestrator([loop_call, loop_call, _text("Done.")])
        dispatcher = StubDispatcher({"getCurrentWeather": ToolOutcome(success=True, data={})})
        service = ChatService(orchestrator, self.registry, dispatcher, max_tool_rounds=2)

        response = await service.handle_chat(_request("Weather?"))

        self.assertEqual(len(orchestrator.calls), 3)
        self.assertEqual([opts.enable_tools for _, _, opts in orchestrator.calls], [True, True, False])
        self.assertEqual(len(dispatcher.calls), 2)
        self.assertEqual(response.message, "Done.")

    async def test_data_source_tools_require_a_data_source(self) -> None:
        orchestrator = ScriptedOrchestrator([_text("Select a data source first.")])
        service = ChatService(orchestrator, self.registry, StubDispatcher({}))

        await service.handle_chat(_request("Show my fields"))

        offered = {spec.name for spec in orchestrator.calls[0][1]}
        self.assertNotIn("getFields", offered)
        self.assertIn("getCurrentWeather", offered)
        self.assertIn("NOT selected a data source", orchestrator.calls[0][2].system_prompt)

    async def test_disabled_tools_and_category_filter(self) -> None:
        orchestrator = ScriptedOrchestrator([_text("a"), _text("b")])
        service = ChatService(orchestrator, self.registry, StubDispatcher({}))

        await service.handle_chat(_request("hi", enableTools=False))
        await service.handle_chat(_request("prices?", toolCategories=["market"]))

        self.assertEqual(orchestrator.calls[0][1], [])
        self.assertFalse(orchestrator.calls[0][2].enable_tools)
        self.assertTrue(all(spec.category == "market" for spec in orchestrator.calls[1][1]))

    async def test_envelope_is_extracted_before_sanitizing(self) -> None:
        envelope = {
            "content": "Wheat is at 210 EUR/ton.",
            "visualizations": [
                {"type": "metric", "title": "Wheat", "data": {"value": 210, "label": "Price"}}
            ],
        }
        orchestrator = ScriptedOrchestrator([_text(f"```json\n{json.dumps(envelope)}\n```")])
        service = ChatService(orchestrator, self.registry, StubDispatcher({}))

        response = await service.handle_chat(_request("Wheat price?"))

        self.assertEqual(response.message, "Wheat is at 210 EUR/ton.")
        self.assertEqual(response.visualizations[0].data, {"value": 210, "label": "Price"})

    async def test_invalid_answer_is_replaced_by_correction(self) -> None:
        orchestrator = ScriptedOrchestrator([_text("Production was high.")])
        validator = StubValidator(
            ValidationResult(is_valid=False, confidence=0.2, explanation="asked for prices"),
            corrected=_text("Maize trades at 190 EUR/ton."),
        )
        service = ChatService(orchestrator, self.registry, StubDispatcher({}), validator=validator)

        response = await service.handle_chat(_request("Maize price?", validateResponse=True))

        self.assertEqual(validator.corrections, 1)
        self.assertEqual(response.message, "Maize trades at 190 EUR/ton.")
        self.assertFalse(response.validation.is_valid)

    async def test_valid_answer_is_kept(self) -> None:
        orchestrator = ScriptedOrchestrator([_text("Maize trades at 190 EUR/ton.")])
        validator = StubValidator(ValidationResult(is_valid=True, confidence=0.9))
        service = ChatService(orchestrator, self.registry, StubDispatcher({}), validator=validator)

        response = await service.handle_chat(_request("Maize price?", validateResponse=True))

        self.assertEqual(validator.corrections, 0)
        self.assertEqual(response.validation.confidence, 0.9)

    async def test_orchestration_failure_propagates(self) -> None:
        class FailingOrchestrator:
            async def run(self, *args: Any) -> ProviderResponse:
                raise OrchestrationError("All LLM providers failed")

        service = ChatService(FailingOrchestrator(), self.registry, StubDispatcher({}))

        with self.assertRaises(OrchestrationError):
            await service.handle_chat(_request("hi"))


if __name__ == "__main__":
    unittest.main()
