import pytest

from genai_gateway.domain.conversation import Conversation
from genai_gateway.domain.models import GenerationResult, Message, Part
from genai_gateway.tools.definitions import FunctionCall, Tool
from genai_gateway.tools.emulator import ToolCallEmulator


def test_part_requires_exactly_one_payload():
    with pytest.raises(ValueError):
        Part()
    with pytest.raises(ValueError):
        Part(text="a", function_call=FunctionCall(name="f"))
    assert Part(text="a").kind == "text"


def test_message_from_sdk_dict():
    msg = Message.from_dict(
        {
            "role": "user",
            "parts": [
                {"text": "look at "},
                {"inlineData": {"mimeType": "image/png", "data": "AAAA"}},
                {"fileData": {"mimeType": "application/pdf", "fileUri": "genai-preview://stub/a.pdf"}},
                {"text": "this"},
            ],
        }
    )
    assert [p.kind for p in msg.parts] == ["text", "inline_data", "file_data", "text"]
    assert msg.text == "look at this"
    assert msg.to_dict()["parts"][1] == {"inlineData": {"mimeType": "image/png", "data": "AAAA"}}


def test_function_parts_round_trip_to_sdk_shape():
    msg = Message.from_dict(
        {
            "role": "function",
            "parts": [{"functionResponse": {"name": "get_weather", "response": {"temp": 21}}}],
        }
    )
    assert msg.parts[0].function_response.response == {"temp": 21}
    assert msg.to_dict() == {
        "role": "function",
        "parts": [{"functionResponse": {"name": "get_weather", "response": {"temp": 21}}}],
    }


def test_result_text_and_function_calls_are_exclusive():
    with pytest.raises(ValueError):
        GenerationResult(text="hi", function_calls=[FunctionCall(name="f")])


def test_conversation_is_append_only():
    conv = Conversation()
    conv.append(Message.from_text("user", "a"))
    snap = conv.snapshot()
    conv.append(Message.from_text("model", "b"))
    assert len(snap) == 1
    assert [m.text for m in conv] == ["a", "b"]


def test_emulator_without_declarations_returns_none():
    assert ToolCallEmulator().emulate([Tool(function_declarations=[])]) is None
    assert ToolCallEmulator().emulate(None) is None


def test_tool_from_snake_case_dict():
    tool = Tool.from_dict({"function_declarations": [{"name": "a"}, {"name": "b", "parameters": {"type": "object"}}]})
    assert [d.name for d in tool.function_declarations] == ["a", "b"]
    assert tool.function_declarations[1].to_dict()["parameters"] == {"type": "object"}
