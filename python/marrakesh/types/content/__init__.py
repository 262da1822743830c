from typing import Annotated, Any

import structlog
from pydantic import Field

from .base import BaseContent
from .file import FileContent
from .image import ImageContent
from .text import TextContent
from .thinking import ThinkingContent
from .tool_result import ToolResultContent
from .tool_use import ToolUseContent

logger = structlog.get_logger("marrakesh.types.content")


Content = Annotated[
    TextContent | ImageContent | FileContent | ToolUseContent | ToolResultContent | ThinkingContent,
    Field(discriminator="type"),
]

_CONTENT_TYPES: dict[str, type[BaseContent]] = {
    "text": TextContent,
    "image": ImageContent,
    "file": FileContent,
    "tool_use": ToolUseContent,
    "tool_result": ToolResultContent,
    "thinking": ThinkingContent,
}

# Alternative spellings found in provider payloads.
_CONTENT_TYPE_ALIASES = {
    "tool-call": "tool_use",
    "tool_call": "tool_use",
    "tool-result": "tool_result",
    "reasoning": "thinking",
    "image_url": "image",
    "document": "file",
}


def content_factory(value: Any) -> BaseContent:
    """Factory method to interpret any python object into a BaseContent object that can be sent to LLMs."""
    if isinstance(value, BaseContent):
        return value
    elif isinstance(value, str):
        return TextContent(text=value)
    elif isinstance(value, dict):
        content_type = value.get("type", None)
        content_type = _CONTENT_TYPE_ALIASES.get(content_type, content_type)
        if content_type == "image" and isinstance(value.get("image_url"), dict):
            return ImageContent(url=value["image_url"].get("url"))
        if content_type == "thinking" and "thinking" not in value and "text" in value:
            return ThinkingContent(thinking=value["text"], signature=value.get("signature"))
        if content_type == "tool_use":
            return ToolUseContent(
                id=value.get("id") or value.get("toolCallId"),
                name=value.get("name") or value.get("toolName"),
                input=value.get("input", value.get("args")),
            )
        if content_type == "tool_result":
            return ToolResultContent(
                id=value.get("id") or value.get("tool_use_id") or value.get("toolCallId"),
                name=value.get("name") or value.get("toolName"),
                output=value.get("output", value.get("result", value.get("content"))),
                is_error=value.get("is_error", False),
            )
        content_cls = _CONTENT_TYPES.get(content_type)
        if content_cls is not None:
            return content_cls.model_validate({**value, "type": content_type})
        logger.debug("unknown_content_type", content_type=content_type)
    # By default try to convert whatever python object we have into a string.
    return TextContent(text=str(value))


__all__ = [
    "BaseContent",
    "Content",
    "FileContent",
    "ImageContent",
    "TextContent",
    "ThinkingContent",
    "ToolResultContent",
    "ToolUseContent",
    "content_factory",
]
