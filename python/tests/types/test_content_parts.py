import pytest
from marrakesh.types import (
    FileContent,
    ImageContent,
    TextContent,
    ThinkingContent,
    ToolResultContent,
    ToolUseContent,
    content_factory,
)


def test_text_content() -> None:
    content = content_factory("Hello, World!")
    assert isinstance(content, TextContent)
    assert content.to_openai_chat_completions_input() == {"type": "text", "text": "Hello, World!"}
    assert content.to_anthropic_input() == {"type": "text", "text": "Hello, World!"}
    assert content.to_summary() == "Hello, World!"
    assert not content.is_complex

    # text must be a string
    with pytest.raises(ValueError):
        TextContent(text=123)


def test_image_url() -> None:
    content = content_factory({"type": "image", "url": "https://example.com/cat.png"})
    assert isinstance(content, ImageContent)
    assert content.to_openai_chat_completions_input() == {
        "type": "image_url",
        "image_url": {"url": "https://example.com/cat.png"},
    }
    assert content.to_anthropic_input() == {
        "type": "image",
        "source": {"type": "url", "url": "https://example.com/cat.png"},
    }
    assert content.to_summary() == "[Image]"
    assert content.is_complex


def test_image_data_url_is_normalized() -> None:
    content = ImageContent(url="data:image/jpeg;base64,AAAA")
    assert content.url is None
    assert content.data == "AAAA"
    assert content.media_type == "image/jpeg"
    assert content.to_anthropic_input()["source"] == {"type": "base64", "media_type": "image/jpeg", "data": "AAAA"}
    assert content.to_openai_chat_completions_input()["image_url"]["url"] == "data:image/jpeg;base64,AAAA"


def test_image_from_openai_payload() -> None:
    content = content_factory({"type": "image_url", "image_url": {"url": "https://example.com/cat.png"}})
    assert isinstance(content, ImageContent)
    assert content.url == "https://example.com/cat.png"


def test_image_requires_a_source() -> None:
    with pytest.raises(ValueError):
        ImageContent()


def test_file_content() -> None:
    content = content_factory({"type": "document", "data": "JVBERi0=", "filename": "report.pdf"})
    assert isinstance(content, FileContent)
    assert content.to_summary() == "[File]"
    anthropic_input = content.to_anthropic_input()
    assert anthropic_input["type"] == "document"
    assert anthropic_input["title"] == "report.pdf"
    assert content.to_openai_chat_completions_input()["type"] == "file"


@pytest.mark.parametrize("payload", [
    {"type": "tool_use", "id": "call_1", "name": "get_weather", "input": {"city": "Paris"}},
    {"type": "tool-call", "toolCallId": "call_1", "toolName": "get_weather", "args": {"city": "Paris"}},
    {"type": "tool_call", "id": "call_1", "name": "get_weather", "input": '{"city": "Paris"}'},
])
def test_tool_use_spellings(payload) -> None:
    content = content_factory(payload)
    assert isinstance(content, ToolUseContent)
    assert content.id == "call_1"
    assert content.name == "get_weather"
    assert content.input == {"city": "Paris"}
    assert content.to_summary() == "[Tool: get_weather]"


def test_tool_use_conversions() -> None:
    content = ToolUseContent(id="call_1", name="get_weather", input={"city": "Paris"})
    assert content.to_openai_chat_completions_input() == {
        "id": "call_1",
        "type": "function",
        "function": {"arguments": '{"city": "Paris"}', "name": "get_weather"},
    }
    assert content.to_anthropic_input() == {
        "type": "tool_use",
        "id": "call_1",
        "name": "get_weather",
        "input": {"city": "Paris"},
    }


def test_tool_use_python_literal_arguments() -> None:
    content = ToolUseContent(id="call_1", name="get_weather", input="{'city': 'Paris'}")
    assert content.input == {"city": "Paris"}


def test_tool_use_rejects_non_object_arguments() -> None:
    with pytest.raises(ValueError):
        ToolUseContent(id="call_1", name="get_weather", input="[1, 2]")


def test_tool_result() -> None:
    content = content_factory({"type": "tool-result", "toolCallId": "call_1", "toolName": "get_weather", "result": {"t": 21}})
    assert isinstance(content, ToolResultContent)
    assert content.text == '{"t": 21}'
    assert content.to_openai_chat_completions_input() == {"role": "tool", "tool_call_id": "call_1", "content": '{"t": 21}'}
    assert content.to_anthropic_input() == {"type": "tool_result", "tool_use_id": "call_1", "content": '{"t": 21}'}
    assert content.to_summary() == "[Result: get_weather]"


def test_tool_result_error() -> None:
    content = ToolResultContent(id="call_1", output="ValueError: boom", is_error=True)
    assert content.to_anthropic_input()["is_error"] is True
    assert content.to_summary() == "[Result: call_1]"


def test_reasoning() -> None:
    content = content_factory({"type": "reasoning", "text": "Paris is the capital."})
    assert isinstance(content, ThinkingContent)
    assert content.to_summary() == "[Reasoning: Paris is the capital.]"
    assert content.is_complex


def test_unknown_values_become_text() -> None:
    assert content_factory(42) == TextContent(text="42")
    assert content_factory({"type": "hologram"}).text == "{'type': 'hologram'}"
