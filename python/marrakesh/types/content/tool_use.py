import json
from typing import Any, Literal

from typing_extensions import override

from pydantic import field_validator

from ...utils import coerce_to_dict
from .base import BaseContent


class ToolUseContent(BaseContent):
    """Tool call requested by the model."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any]

    @field_validator("input", mode="before")
    def validate_input(cls, v: Any):
        return coerce_to_dict(v)

    @override
    def to_openai_chat_completions_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        return {"id": self.id, "type": "function", "function": {"arguments": json.dumps(self.input), "name": self.name}}

    @override
    def to_anthropic_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        return {
            "type": "tool_use",
            "id": self.id,
            "name": self.name,
            "input": self.input,
        }

    @override
    def to_summary(self) -> str:
        """See base class."""
        return f"[Tool: {self.name}]"
