from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from ..core.llm_router import model_label
from ..types.usage import Usage

if TYPE_CHECKING:
    from ..core.prompt import Prompt

FinishReason = Literal["stop", "length", "tool-calls", "error", "timeout"]


class ExecutorConfig(BaseModel):
    """Configuration of one executor. Bound to exactly one executor instance per suite run.

    Accepts both snake_case and camelCase keys (`max_steps` / `maxSteps`).
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    model: Any
    """Model handle: a `provider/model_name` string or any `LanguageModel`."""
    max_steps: int = Field(5, ge=1)
    """Upper bound on agentic rounds (model calls)."""
    timeout_ms: int = Field(30000, gt=0)
    """Wall clock bound on the whole agentic loop."""
    temperature: float | None = None
    max_output_tokens: int | None = None

    @property
    def label(self) -> str:
        return model_label(self.model)

    @field_serializer("model")
    def serialize_model(self, model: Any) -> str:
        return model_label(model)


class ToolCallRecord(BaseModel):
    """One tool invocation within a step."""

    tool_name: str
    input: Any = None
    output: Any = None
    error: str | None = None


class ExecutionStep(BaseModel):
    """One round of the agentic loop."""

    step_number: int
    """1-indexed."""
    tool_calls: list[ToolCallRecord] | None = None
    text: str | None = None


class ExecutionResult(BaseModel):
    """Terminal outcome of one executor invocation."""

    output: Any = None
    steps: list[ExecutionStep] = Field(default_factory=list)
    finish_reason: FinishReason
    usage: Usage | None = None
    error: str | None = None


Executor = Callable[["Prompt", str], Awaitable[ExecutionResult]]
"""Performs one end-to-end model invocation for a prompt and an input. Never raises."""
