import json
import unittest

from farm_assistant.constants import FUNCTION_RESULT_MARKER, SYSTEM_ACKNOWLEDGEMENT
from farm_assistant.message_mappers import build_gemini_contents, build_openai_messages
from farm_assistant.schemas import ConversationTurn, ToolCall, ToolResult


def _tool_turn(name: str, call_id: str | None = None, success: bool = True) -> ConversationTurn:
    return ConversationTurn(
        role="tool",
        tool_result=ToolResult(name=name, call_id=call_id, success=success, message="done"),
    )


class OpenAIMessageTests(unittest.TestCase):
    def test_system_prompt_is_first_message(self) -> None:
        messages = build_openai_messages(
            [ConversationTurn(role="user", content="hi")], system_prompt="be brief"
        )

        self.assertEqual(messages[0], {"role": "system", "content": "be brief"})
        self.assertEqual(messages[1], {"role": "user", "content": "hi"})

    def test_tool_result_pairs_with_explicit_call_id(self) -> None:
        conversation = [
            ConversationTurn(role="user", content="weather?"),
            ConversationTurn(
                role="assistant",
                tool_calls=[ToolCall(name="getCurrentWeather", arguments={}, call_id="call_abc")],
            ),
            _tool_turn("getCurrentWeather", "call_abc"),
        ]

        messages = build_openai_messages(conversation)

        assistant = messages[1]
        self.assertIsNone(assistant["content"])
        self.assertEqual(assistant["tool_calls"][0]["id"], "call_abc")
        self.assertEqual(json.loads(assistant["tool_calls"][0]["function"]["arguments"]), {})
        self.assertEqual(messages[2]["role"], "tool")
        self.assertEqual(messages[2]["tool_call_id"], "call_abc")

    def test_tool_results_without_ids_pair_in_emission_order(self) -> None:
        conversation = [
            ConversationTurn(role="user", content="plan"),
            ConversationTurn(
                role="assistant",
                tool_calls=[
                    ToolCall(name="getFields"),
                    ToolCall(name="getEquipment"),
                ],
            ),
            _tool_turn("getFields"),
            _tool_turn("getEquipment"),
        ]

        messages = build_openai_messages(conversation)

        call_ids = [call["id"] for call in messages[1]["tool_calls"]]
        self.assertEqual(call_ids, ["call_1_0", "call_1_1"])
        self.assertEqual([m["tool_call_id"] for m in messages[2:]], call_ids)

    def test_unmatched_tool_result_degrades_to_user_text(self) -> None:
        conversation = [
            ConversationTurn(role="user", content="hi"),
            _tool_turn("getFields", "call_missing"),
        ]

        with self.assertLogs("farm_assistant.message_mappers", level="WARNING"):
            messages = build_openai_messages(conversation)

        self.assertEqual(messages[-1]["role"], "user")
        self.assertTrue(messages[-1]["content"].startswith(f"{FUNCTION_RESULT_MARKER} getFields:"))
        self.assertFalse(any(m["role"] == "tool" for m in messages))

    def test_each_call_id_is_claimed_once(self) -> None:
        conversation = [
            ConversationTurn(
                role="assistant",
                tool_calls=[ToolCall(name="getFields", call_id="call_1")],
            ),
            _tool_turn("getFields", "call_1"),
            _tool_turn("getFields", "call_1"),
        ]

        with self.assertLogs("farm_assistant.message_mappers", level="WARNING"):
            messages = build_openai_messages(conversation)

        self.assertEqual(messages[1]["role"], "tool")
        self.assertEqual(messages[2]["role"], "user")

    def test_adaptation_is_deterministic(self) -> None:
        conversation = [
            ConversationTurn(role="user", content="weather?"),
            ConversationTurn(role="assistant", tool_calls=[ToolCall(name="getCurrentWeather")]),
            _tool_turn("getCurrentWeather", success=False),
        ]

        self.assertEqual(build_openai_messages(conversation), build_openai_messages(conversation))

    def test_attachments_are_annotated_on_user_turns(self) -> None:
        turn = ConversationTurn(
            role="user",
            content="see file",
            attachments=[{"name": "soil.pdf", "mimeType": "application/pdf", "sizeBytes": 1024}],
        )

        messages = build_openai_messages([turn])

        self.assertEqual(
            messages[0]["content"],
            "see file\n\n[Attached file: soil.pdf (application/pdf, 1024 bytes)]",
        )


class GeminiContentTests(unittest.TestCase):
    def test_system_prompt_becomes_user_turn_with_acknowledgement(self) -> None:
        contents = build_gemini_contents(
            [ConversationTurn(role="user", content="hi")], system_prompt="be brief"
        )

        self.assertEqual(contents[0], {"role": "user", "parts": [{"text": "be brief"}]})
        self.assertEqual(
            contents[1], {"role": "model", "parts": [{"text": SYSTEM_ACKNOWLEDGEMENT}]}
        )
        self.assertEqual(contents[2]["role"], "user")

    def test_only_user_and_model_roles_are_emitted(self) -> None:
        conversation = [
            ConversationTurn(role="user", content="weather?"),
            ConversationTurn(
                role="assistant",
                tool_calls=[ToolCall(name="getCurrentWeather", arguments={"location": "Ulm"})],
            ),
            _tool_turn("getCurrentWeather"),
            ConversationTurn(role="assistant", content="Sunny."),
        ]

        contents = build_gemini_contents(conversation)

        self.assertEqual([c["role"] for c in contents], ["user", "model", "user", "model"])
        self.assertIn("getCurrentWeather", contents[1]["parts"][0]["text"])
        self.assertTrue(
            contents[2]["parts"][0]["text"].startswith("Function result (getCurrentWeather):")
        )


if __name__ == "__main__":
    unittest.main()
