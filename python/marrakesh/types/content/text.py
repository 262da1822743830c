from typing import Any, Literal

from typing_extensions import override

from .base import BaseContent


class TextContent(BaseContent):
    """Text content type for chat messages."""
    type: Literal["text"] = "text"
    text: str

    @override
    def to_openai_chat_completions_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        return {
            "type": "text",
            "text": self.text,
        }

    @override
    def to_anthropic_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        return {
            "type": "text",
            "text": self.text,
        }

    @override
    def to_summary(self) -> str:
        """See base class."""
        return self.text

    @property
    @override
    def is_complex(self) -> bool:
        return False
