from typing import Any, Literal

from typing_extensions import override

from pydantic import model_validator

from .base import BaseContent


class FileContent(BaseContent):
    """Document content type for chat messages (pdfs, plain text documents...)."""
    type: Literal["file"] = "file"
    data: str | None = None
    """Base64 encoded file contents."""
    url: str | None = None
    filename: str | None = None
    media_type: str = "application/pdf"

    @model_validator(mode="after")
    def validate_source(self) -> "FileContent":
        if self.url is None and self.data is None:
            raise ValueError("FileContent requires either 'url' or 'data'.")
        return self

    @override
    def to_openai_chat_completions_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        if self.data is None:
            # Chat completions only accepts inline files.
            return {"type": "text", "text": f"File: {self.url}"}
        file = {"file_data": f"data:{self.media_type};base64,{self.data}"}
        if self.filename:
            file["filename"] = self.filename
        return {
            "type": "file",
            "file": file,
        }

    @override
    def to_anthropic_input(self, **kwargs: Any) -> dict[str, Any]:
        """See base class."""
        if self.url is not None:
            source = {"type": "url", "url": self.url}
        else:
            source = {"type": "base64", "media_type": self.media_type, "data": self.data}
        content = {
            "type": "document",
            "source": source,
        }
        if self.filename:
            content["title"] = self.filename
        return content

    @override
    def to_summary(self) -> str:
        """See base class."""
        return "[File]"
