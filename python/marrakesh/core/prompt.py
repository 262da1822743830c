import json
import re
from collections.abc import Sequence
from functools import cached_property
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..analytics.utils import generate_prompt_id
from ..types.message import Message
from .tool import Tool

if TYPE_CHECKING:
    from ..executors.types import Executor, ExecutorConfig
    from ..testing.suite import TestSuite
    from ..testing.types import EvalResult, TestCase

logger = structlog.get_logger("marrakesh.core.prompt")

CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*\n?(?P<body>.*?)\n?```$", re.DOTALL)


class RenderedPrompt(BaseModel):
    """A prompt ready to be sent to a model: system prompt, conversation, tools and output schema."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    system_prompt: str | None = None
    messages: list[Message] = Field(default_factory=list)
    tools: list[Tool] = Field(default_factory=list)
    output_schema: dict[str, Any] | None = None


class Prompt(BaseModel):
    """A system prompt together with the tools and structured output it is evaluated with.

    Example:
        ```python
        def get_weather(city: str) -> dict:
            \"\"\"Get the current weather for a city.\"\"\"
            return {"city": city, "temperature": 21}

        weather_agent = Prompt(
            name="weather_agent",
            system_prompt="You are a weather assistant.",
            tools=[get_weather],
        )

        suite = weather_agent.test(
            cases=[{"input": "Weather in Paris?", "expect": {"city": "Paris"}}],
            executors=[{"model": "openai/gpt-4o-mini"}],
        )
        ```
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, ignored_types=(cached_property,))

    system_prompt: str
    """Instructions sent as the system message."""
    tools: list[Tool] = Field(default_factory=list)
    """Tools the model may call. Plain callables are wrapped into tools."""
    output_model: type[BaseModel] | None = None
    """Structured output the final answer is parsed into."""
    output_schema: dict[str, Any] | None = None
    """Raw JSON schema of the structured output. Derived from `output_model` when omitted."""
    name: str | None = None

    @field_validator("tools", mode="before")
    @classmethod
    def validate_tools(cls, v: Any) -> Any:
        if v is None:
            return []
        return [item if isinstance(item, Tool) else Tool(handler=item) for item in v]

    @model_validator(mode="after")
    def validate_prompt(self) -> "Prompt":
        seen: set[str] = set()
        for tool in self.tools:
            if tool.name in seen:
                raise ValueError(f"Duplicate tool name '{tool.name}'.")
            seen.add(tool.name)
        if self.output_model is not None and self.output_schema is None:
            self.output_schema = self.output_model.model_json_schema()
        return self

    @cached_property
    def prompt_id(self) -> str:
        """Deterministic id derived from the system prompt and the tool names."""
        return generate_prompt_id(self.system_prompt, [tool.name for tool in self.tools])

    @property
    def display_name(self) -> str:
        return self.name or self.prompt_id

    def get_tool(self, name: str) -> Tool | None:
        return next((tool for tool in self.tools if tool.name == name), None)

    def render(self, input: Any) -> RenderedPrompt:
        """Render the prompt for one input. Strings become a single user message."""
        if isinstance(input, list):
            messages = [Message.validate(item) for item in input]
        else:
            messages = [Message.validate(input)]
        return RenderedPrompt(
            system_prompt=self.system_prompt,
            messages=messages,
            tools=list(self.tools),
            output_schema=self.output_schema,
        )

    def parse_output(self, text: str) -> Any:
        """Parse the final model text into the declared structured output.

        Raises when the text is not valid JSON or does not validate against `output_model`.
        """
        text = text.strip()
        if match := CODE_FENCE_PATTERN.match(text):
            text = match.group("body").strip()
        parsed = json.loads(text)
        if self.output_model is not None:
            return self.output_model.model_validate(parsed).model_dump(mode="json")
        return parsed

    def test(
        self,
        cases: Sequence["TestCase | dict[str, Any] | str"],
        executors: Sequence["ExecutorConfig | dict[str, Any]"] | None = None,
        name: str | None = None,
        **kwargs: Any,
    ) -> "TestSuite":
        """Attach test cases (and default executors) to this prompt."""
        from ..testing.suite import TestSuite
        return TestSuite(prompt=self, cases=cases, executors=executors, name=name or self.name, **kwargs)

    async def eval(
        self,
        input: str,
        executor: "ExecutorConfig | dict[str, Any] | Executor",
        expect: Any = ...,
        timeout_ms: int | None = None,
    ) -> "EvalResult":
        """Evaluate a single input against a single executor, outside of any suite."""
        from ..executors import ExecutorConfig, create_executor
        from ..testing.suite import run_single
        from ..testing.types import TestCase

        case_kwargs: dict[str, Any] = {"input": input}
        if expect is not ...:
            case_kwargs["expect"] = expect
        if timeout_ms is not None:
            case_kwargs["timeout_ms"] = timeout_ms
        test_case = TestCase(**case_kwargs)

        if callable(executor):
            return await run_single(self, test_case, executor, None)
        config = ExecutorConfig.model_validate(executor)
        return await run_single(self, test_case, create_executor(config), config)
