import re
from typing import Any, Literal

from typing_extensions import override

from pydantic import model_validator

from .base import BaseContent

DATA_URL_PATTERN = re.compile(r"^data:(?P<media_type>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)


class ImageContent(BaseContent):
    """Image content type for chat messages. Either a remote url or base64 data."""
    type: Literal["image"] = "image"
    url: str | None = None
    data: str | None = None
    media_type: str = "image/png"

    @model_validator(mode="after")
    def validate_source(self) -> "ImageContent":
        if self.url is None and self.data is None:
            raise ValueError("ImageContent requires either 'url' or 'data'.")
        # Normalize inline data urls so every provider receives the same shape.
        if self.url is not None and (match := DATA_URL_PATTERN.match(self.url)):
            self.media_type = match.group("media_type")
            self.data = match.group("data")
            self.url = None
        return self

    @override
    def to_openai_chat_completions_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        url = self.url if self.url is not None else f"data:{self.media_type};base64,{self.data}"
        return {
            "type": "image_url",
            "image_url": {"url": url},
        }

    @override
    def to_anthropic_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        if self.url is not None:
            source = {"type": "url", "url": self.url}
        else:
            source = {"type": "base64", "media_type": self.media_type, "data": self.data}
        return {
            "type": "image",
            "source": source,
        }

    @override
    def to_summary(self) -> str:
        """See base class."""
        return "[Image]"
