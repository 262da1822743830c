import json
from typing import Any, Literal

from typing_extensions import override

from ...utils import to_jsonable
from .base import BaseContent


class ToolResultContent(BaseContent):
    """Result of executing a tool call, sent back to the model."""
    type: Literal["tool_result"] = "tool_result"
    id: str
    name: str | None = None
    output: Any = None
    is_error: bool = False

    @property
    def text(self) -> str:
        if isinstance(self.output, str):
            return self.output
        return json.dumps(to_jsonable(self.output))

    @override
    def to_openai_chat_completions_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        return {
            "role": "tool",
            "tool_call_id": self.id,
            "content": self.text,
        }

    @override
    def to_anthropic_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        data = {
            "type": "tool_result",
            "tool_use_id": self.id,
            "content": self.text,
        }
        if self.is_error:
            data["is_error"] = True
        return data

    @override
    def to_summary(self) -> str:
        """See base class."""
        return f"[Result: {self.name or self.id}]"
