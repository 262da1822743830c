from typing import Any, Literal

from pydantic import BaseModel, field_validator

from .content import (
    BaseContent,
    Content,
    TextContent,
    ToolResultContent,
    ToolUseContent,
    content_factory,
)

Role = Literal["user", "assistant", "system", "tool"]


class Message(BaseModel):
    """A message in a conversation with an LLM.

    Handles the conversion to the OpenAI chat completions and Anthropic
    messages formats, plus the flattening used for analytics records.

    Attributes:
        role: The role of the message sender
        content: Ordered list of content parts
    """

    role: Role
    content: list[Content]

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: Any) -> list[BaseContent]:
        if v is None:
            return []
        if not isinstance(v, list):
            v = [v]
        return [content_factory(item) for item in v]

    @classmethod
    def validate(cls, value: Any) -> "Message":
        """Validate and convert inputs into a Message instance.

        Accepts messages, dicts in our format or in OpenAI's (with `tool_calls`),
        and anything else, which becomes the content of a user message.
        """
        if isinstance(value, Message):
            return value
        if isinstance(value, dict) and "role" in value:
            content = value.get("content")
            if isinstance(content, list):
                content = list(content)
            else:
                content = [] if content is None else [content]
            for tool_call in value.get("tool_calls") or []:
                function = tool_call.get("function", {})
                content.append(ToolUseContent(
                    id=tool_call.get("id"),
                    name=function.get("name"),
                    input=function.get("arguments"),
                ))
            return cls(role=value["role"], content=content)
        return cls(role="user", content=value)

    def to_openai_chat_completions_input(self) -> dict[str, Any] | list[dict[str, Any]]:
        """Convert the message to OpenAI's expected input format.

        Tool results become one `tool` role message each, so a list is returned for those.
        """
        tool_results = [c for c in self.content if isinstance(c, ToolResultContent)]
        if tool_results:
            return [c.to_openai_chat_completions_input() for c in tool_results]
        # OpenAI expects tool calls to be in a separate field in the message
        content = []
        tool_calls = []
        for content_item in self.content:
            if isinstance(content_item, ToolUseContent):
                tool_calls.append(content_item.to_openai_chat_completions_input())
            else:
                content.append(content_item.to_openai_chat_completions_input())
        openai_input: dict[str, Any] = {"role": self.role}
        if self.role in ("assistant", "system") and all(c["type"] == "text" for c in content):
            openai_input["content"] = "\n\n".join(c["text"] for c in content) if content else None
        else:
            openai_input["content"] = content
        if tool_calls:
            openai_input["tool_calls"] = tool_calls
        return openai_input

    def to_anthropic_input(self) -> dict[str, Any]:
        """Convert the message to Anthropic's expected input format."""
        # Anthropic carries tool results inside user messages.
        role = "user" if self.role == "tool" else self.role
        return {
            "role": role,
            "content": [content_item.to_anthropic_input() for content_item in self.content],
        }

    def collect_text(self) -> str:
        """Collect all text from the message content."""
        return "\n\n".join(c.text for c in self.content if isinstance(c, TextContent))

    def tool_uses(self) -> list[ToolUseContent]:
        return [c for c in self.content if isinstance(c, ToolUseContent)]

    def normalize(self) -> str:
        """Flatten the message into a single string for analytics tracking."""
        return " ".join(summary for c in self.content if (summary := c.to_summary()))

    def has_complex_content(self) -> bool:
        """Whether the message carries anything other than plain text (images, files, tools, reasoning)."""
        return any(c.is_complex for c in self.content)
