from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class BaseContent(ABC, BaseModel):
    """Abstract base class for all message content types."""
    type: str

    @abstractmethod
    def to_openai_chat_completions_input(self, **kwargs: Any) -> dict[str, Any]:
        """Convert the content to the input format required by OpenAI's chat completions api."""
        pass

    @abstractmethod
    def to_anthropic_input(self, **kwargs: Any) -> dict[str, Any]:
        """Convert the content to the input format required by Anthropic's api."""
        pass

    @abstractmethod
    def to_summary(self) -> str:
        """Flatten the content into a short string suitable for analytics records."""
        pass

    @property
    def is_complex(self) -> bool:
        """Whether this part carries anything other than plain text."""
        return True
