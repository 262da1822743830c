# ruff: noqa: F401
from .content import (
    BaseContent,
    Content,
    FileContent,
    ImageContent,
    TextContent,
    ThinkingContent,
    ToolResultContent,
    ToolUseContent,
    content_factory,
)
from .message import Message
from .usage import Usage
