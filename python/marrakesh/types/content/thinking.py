from typing import Any, Literal

from typing_extensions import override

from .base import BaseContent


class ThinkingContent(BaseContent):
    """Thinking content type for chat messages."""
    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str | None = None

    @override
    def to_openai_chat_completions_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        return {
            "type": "text",
            "text": self.thinking,
        }

    @override
    def to_anthropic_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        return {
            "type": "thinking",
            "thinking": self.thinking,
            "signature": self.signature,
        }

    @override
    def to_summary(self) -> str:
        """See base class."""
        return f"[Reasoning: {self.thinking}]"
