import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from ..core.llm_router import LanguageModel, ModelRequest, resolve_model
from ..core.tool import Tool
from ..errors import ModelResponseError
from ..types.content import ToolResultContent, ToolUseContent
from ..types.message import Message
from ..types.usage import Usage
from .types import ExecutionResult, ExecutionStep, Executor, ExecutorConfig, FinishReason, ToolCallRecord

if TYPE_CHECKING:
    from ..core.prompt import Prompt

logger = structlog.get_logger("marrakesh.executors.executor")

EXECUTION_TIMEOUT_ERROR = "Execution timeout"


class _ExecutionState:
    """Partial state of one invocation. Survives a timeout so recorded steps can be returned."""

    def __init__(self) -> None:
        self.steps: list[ExecutionStep] = []
        self.usage: Usage | None = None

    def add_usage(self, usage: Usage | None) -> None:
        if usage is None:
            return
        self.usage = usage if self.usage is None else self.usage + usage


class LLMExecutor:
    """Runs the agentic tool-calling loop of a prompt against one model configuration.

    Each round sends the conversation to the model. When the model requests
    tools, every requested call of that round is executed concurrently, the
    results are appended to the conversation and a new round starts. The loop
    ends when the model answers without tool calls or `max_steps` rounds have
    run. The whole loop is bounded by `timeout_ms`.

    An executor never raises: timeouts and failures are reported through the
    `finish_reason` and `error` of the returned `ExecutionResult`.
    """

    def __init__(self, config: ExecutorConfig) -> None:
        self.config = config
        self._model: LanguageModel | None = None

    @property
    def label(self) -> str:
        return self.config.label

    @property
    def model(self) -> LanguageModel:
        if self._model is None:
            self._model = resolve_model(self.config.model)
        return self._model

    def __repr__(self) -> str:
        return f"LLMExecutor(model={self.label!r}, max_steps={self.config.max_steps})"

    async def __call__(self, prompt: "Prompt", input: str) -> ExecutionResult:
        state = _ExecutionState()
        try:
            return await asyncio.wait_for(
                self._run(prompt, input, state),
                timeout=self.config.timeout_ms / 1000,
            )
        except TimeoutError:
            logger.info("executor_timeout", model=self.label, timeout_ms=self.config.timeout_ms, steps=len(state.steps))
            return ExecutionResult(
                output=None,
                steps=list(state.steps),
                finish_reason="timeout",
                usage=state.usage,
                error=EXECUTION_TIMEOUT_ERROR,
            )
        except Exception as e:
            logger.info("executor_error", model=self.label, error=str(e), exc_info=True)
            return ExecutionResult(
                output=None,
                steps=list(state.steps),
                finish_reason="error",
                usage=state.usage,
                error=str(e) or type(e).__name__,
            )

    async def _run(self, prompt: "Prompt", input: str, state: _ExecutionState) -> ExecutionResult:
        rendered = prompt.render(input)
        model = self.model
        messages = list(rendered.messages)

        finish_reason: FinishReason = "tool-calls"
        final_text: str | None = None
        tool_outputs: list[Any] = []

        for step_number in range(1, self.config.max_steps + 1):
            request = ModelRequest(
                system_prompt=rendered.system_prompt,
                messages=messages,
                tools=rendered.tools,
                output_schema=rendered.output_schema,
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
            )
            try:
                response = await model.generate(request)
            except TimeoutError as e:
                # Only the executor deadline in __call__ maps to a "timeout" finish.
                detail = f": {e}" if str(e) else ""
                raise ModelResponseError(f"{self.label} request timed out{detail}") from e
            state.add_usage(response.usage)

            if response.finish_reason == "error":
                raise ModelResponseError(f"{self.label} stopped with an error finish reason.")

            text = response.message.collect_text() or None
            final_text = text
            messages.append(response.message)
            tool_uses = response.message.tool_uses()

            if not tool_uses:
                state.steps.append(ExecutionStep(step_number=step_number, text=text))
                finish_reason = response.finish_reason
                break

            records = await asyncio.gather(*[
                self._execute_tool(rendered.tools, tool_use) for tool_use in tool_uses
            ])
            state.steps.append(ExecutionStep(step_number=step_number, tool_calls=list(records), text=text))
            tool_outputs.extend(record.output for record in records if record.error is None)

            messages.append(Message(role="tool", content=[
                ToolResultContent(
                    id=tool_use.id,
                    name=tool_use.name,
                    output=record.output if record.error is None else record.error,
                    is_error=record.error is not None,
                )
                for tool_use, record in zip(tool_uses, records, strict=True)
            ]))
            finish_reason = "tool-calls"
        else:
            logger.debug("executor_max_steps_reached", model=self.label, max_steps=self.config.max_steps)

        return ExecutionResult(
            output=self._extract_output(prompt, final_text, rendered.output_schema, tool_outputs),
            steps=list(state.steps),
            finish_reason=finish_reason,
            usage=state.usage,
        )

    async def _execute_tool(self, tools: list[Tool], tool_use: ToolUseContent) -> ToolCallRecord:
        tool = next((t for t in tools if t.name == tool_use.name), None)
        if tool is None:
            return ToolCallRecord(
                tool_name=tool_use.name,
                input=tool_use.input,
                error=f"Unknown tool '{tool_use.name}'.",
            )
        try:
            output = await tool.execute(tool_use.input)
        except Exception as e:
            logger.debug("tool_error", tool=tool_use.name, error=str(e))
            return ToolCallRecord(
                tool_name=tool_use.name,
                input=tool_use.input,
                error=f"{type(e).__name__}: {e}",
            )
        return ToolCallRecord(tool_name=tool_use.name, input=tool_use.input, output=output)

    def _extract_output(
        self,
        prompt: "Prompt",
        text: str | None,
        output_schema: dict[str, Any] | None,
        tool_outputs: list[Any],
    ) -> Any:
        if text:
            if output_schema is None:
                return text
            try:
                return prompt.parse_output(text)
            except Exception as e:
                logger.debug("structured_output_parse_failed", model=self.label, error=str(e))
                return text
        if tool_outputs:
            return tool_outputs[-1]
        return ""


def create_executor(config: ExecutorConfig | dict[str, Any]) -> Executor:
    """Create the executor bound to `config`."""
    if not isinstance(config, ExecutorConfig):
        config = ExecutorConfig.model_validate(config)
    return LLMExecutor(config)
