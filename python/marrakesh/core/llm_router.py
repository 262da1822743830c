"""
Model routing.

String model handles of the form `provider/model_name` are resolved into a
`RouterModel`, which calls the provider SDK (non-streaming) and normalizes
the reply into a `ModelResponse`. Anything else implementing the
`LanguageModel` protocol can be used directly as an executor model.
"""
import json
import os
from typing import Any, Literal, Protocol, runtime_checkable

import structlog
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..errors import APIKeyNotFoundError, ModelResponseError
from ..types.content import TextContent, ThinkingContent, ToolUseContent
from ..types.message import Message
from ..types.usage import Usage
from .tool import Tool

logger = structlog.get_logger("marrakesh.core.llm_router")

FinishReason = Literal["stop", "length", "tool-calls", "error"]

# Anthropic requires max_tokens on every request.
DEFAULT_ANTHROPIC_MAX_TOKENS = 4096

OPENAI_COMPATIBLE_BASE_URLS = {
    "google": "https://generativelanguage.googleapis.com/v1beta/openai/",
    "togetherai": "https://api.together.xyz/v1",
}

PROVIDER_API_KEYS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GEMINI_API_KEY",
    "togetherai": "TOGETHER_API_KEY",
}

OPENAI_FINISH_REASONS: dict[str | None, FinishReason] = {
    "stop": "stop",
    "length": "length",
    "tool_calls": "tool-calls",
    "function_call": "tool-calls",
    "content_filter": "error",
}

ANTHROPIC_STOP_REASONS: dict[str | None, FinishReason] = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "pause_turn": "stop",
    "max_tokens": "length",
    "tool_use": "tool-calls",
    "refusal": "error",
}


class ModelRequest(BaseModel):
    """Everything a model needs for one round of the agentic loop."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    system_prompt: str | None = None
    messages: list[Message] = Field(default_factory=list)
    tools: list[Tool] = Field(default_factory=list)
    output_schema: dict[str, Any] | None = None
    temperature: float | None = None
    max_output_tokens: int | None = None


class ModelResponse(BaseModel):
    """Normalized reply of one model call."""

    message: Message
    finish_reason: FinishReason = "stop"
    usage: Usage | None = None


@runtime_checkable
class LanguageModel(Protocol):
    """Anything that can answer a `ModelRequest`."""

    model_id: str

    async def generate(self, request: ModelRequest) -> ModelResponse: ...


class RouterModel(BaseModel):
    """Language model backed by a provider SDK, addressed as `provider/model_name`."""

    model: str

    _client: Any = PrivateAttr(default=None)

    @property
    def provider(self) -> str:
        return self.model.split("/", 1)[0]

    @property
    def model_name(self) -> str:
        return self.model.split("/", 1)[1]

    @property
    def model_id(self) -> str:
        return self.model

    def model_post_init(self, __context: Any) -> None:
        if "/" not in self.model:
            raise ValueError("Model must be in format 'provider/model_name'")
        if self.provider not in PROVIDER_API_KEYS:
            raise ValueError(f"Unsupported provider: {self.provider}")

    def _get_client(self) -> AsyncOpenAI | AsyncAnthropic:
        if self._client is not None:
            return self._client

        env_var = PROVIDER_API_KEYS[self.provider]
        api_key = os.getenv(env_var)
        if not api_key:
            raise APIKeyNotFoundError(f"{env_var} not found.")

        if self.provider == "anthropic":
            self._client = AsyncAnthropic(api_key=api_key)
        elif self.provider == "openai":
            self._client = AsyncOpenAI(api_key=api_key)
        else:
            self._client = AsyncOpenAI(api_key=api_key, base_url=OPENAI_COMPATIBLE_BASE_URLS[self.provider])
        return self._client

    async def generate(self, request: ModelRequest) -> ModelResponse:
        client = self._get_client()
        if self.provider == "anthropic":
            return await self._generate_anthropic(client, request)
        return await self._generate_chat_completions(client, request)

    async def _generate_anthropic(self, client: AsyncAnthropic, request: ModelRequest) -> ModelResponse:
        anthropic_kwargs: dict[str, Any] = {
            "model": self.model_name,
            "messages": [message.to_anthropic_input() for message in request.messages],
            "max_tokens": request.max_output_tokens or DEFAULT_ANTHROPIC_MAX_TOKENS,
        }

        system_prompt = request.system_prompt
        if request.output_schema:
            # Anthropic has no native response format.
            schema_instructions = (
                "Respond only with a JSON object matching this JSON schema, without any surrounding text:\n"
                f"{json.dumps(request.output_schema)}"
            )
            system_prompt = f"{system_prompt}\n\n{schema_instructions}" if system_prompt else schema_instructions
        if system_prompt:
            anthropic_kwargs["system"] = system_prompt

        if request.tools:
            anthropic_kwargs["tools"] = [tool.anthropic_schema for tool in request.tools]

        if request.temperature is not None:
            anthropic_kwargs["temperature"] = request.temperature

        res = await client.messages.create(**anthropic_kwargs)

        content = []
        for block in res.content:
            if block.type == "text":
                content.append(TextContent(text=block.text))
            elif block.type == "tool_use":
                content.append(ToolUseContent(id=block.id, name=block.name, input=block.input))
            elif block.type == "thinking":
                content.append(ThinkingContent(thinking=block.thinking, signature=block.signature))
            else:
                logger.debug("anthropic_block_ignored", block_type=block.type)

        usage = None
        if res.usage is not None:
            usage = Usage(prompt_tokens=res.usage.input_tokens, completion_tokens=res.usage.output_tokens)

        return ModelResponse(
            message=Message(role="assistant", content=content),
            finish_reason=ANTHROPIC_STOP_REASONS.get(res.stop_reason, "stop"),
            usage=usage,
        )

    async def _generate_chat_completions(self, client: AsyncOpenAI, request: ModelRequest) -> ModelResponse:
        chat_completions_messages = []
        if request.system_prompt:
            chat_completions_messages.append({"role": "system", "content": request.system_prompt})
        for message in request.messages:
            chat_completions_message = message.to_openai_chat_completions_input()
            if isinstance(chat_completions_message, list):
                chat_completions_messages.extend(chat_completions_message)
            else:
                chat_completions_messages.append(chat_completions_message)

        chat_completions_kwargs: dict[str, Any] = {
            "model": self.model_name,
            "messages": chat_completions_messages,
        }

        if request.tools:
            chat_completions_kwargs["tools"] = [tool.openai_chat_completions_schema for tool in request.tools]

        if request.output_schema:
            chat_completions_kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "output", "schema": request.output_schema},
            }

        if request.temperature is not None:
            chat_completions_kwargs["temperature"] = request.temperature

        if request.max_output_tokens:
            chat_completions_kwargs["max_completion_tokens"] = request.max_output_tokens

        res = await client.chat.completions.create(**chat_completions_kwargs)
        if not res.choices:
            raise ModelResponseError(f"{self.model} returned no choices.")

        choice = res.choices[0]
        content = []
        if choice.message.content:
            content.append(TextContent(text=choice.message.content))
        for tool_call in choice.message.tool_calls or []:
            content.append(ToolUseContent(
                id=tool_call.id,
                name=tool_call.function.name,
                input=tool_call.function.arguments,
            ))

        usage = None
        if res.usage is not None:
            usage = Usage(
                prompt_tokens=res.usage.prompt_tokens,
                completion_tokens=res.usage.completion_tokens,
                total_tokens=res.usage.total_tokens,
            )

        finish_reason = OPENAI_FINISH_REASONS.get(choice.finish_reason, "stop")
        # Some compatible providers report "stop" alongside tool calls.
        if finish_reason == "stop" and choice.message.tool_calls:
            finish_reason = "tool-calls"

        return ModelResponse(
            message=Message(role="assistant", content=content),
            finish_reason=finish_reason,
            usage=usage,
        )


def resolve_model(model: Any) -> LanguageModel:
    """Interpret an executor model handle as a `LanguageModel`."""
    if isinstance(model, str):
        return RouterModel(model=model)
    if isinstance(model, LanguageModel):
        return model
    raise TypeError(f"Unsupported model handle of type {type(model).__name__}.")


def model_label(model: Any) -> str:
    """Display label for a model handle. Never raises on unrecognized shapes."""
    if isinstance(model, str):
        return model
    for attr in ("model_id", "modelId", "name", "model"):
        try:
            value = getattr(model, attr, None)
        except Exception:
            value = None
        if isinstance(value, str) and value:
            return value
    return "unknown"
