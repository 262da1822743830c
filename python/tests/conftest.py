import asyncio
import os
from typing import Any

import pytest
from dotenv import load_dotenv
from marrakesh.core.llm_router import ModelRequest, ModelResponse
from marrakesh.executors import ExecutionResult, ExecutorConfig
from marrakesh.types import Message, TextContent, ToolUseContent, Usage

# Set environment variable early to suppress warnings during imports
os.environ["PYTHONWARNINGS"] = "ignore::DeprecationWarning"


def pytest_configure(config):
    """Configure pytest with global settings."""
    # Load environment variables
    load_dotenv()


@pytest.fixture(autouse=True)
def no_telemetry(monkeypatch):
    """Never reach the real ingestion endpoint from tests."""
    monkeypatch.delenv("MARRAKESH_API_KEY", raising=False)
    monkeypatch.setenv("MARRAKESH_ANALYTICS_DISABLED", "true")


# ==============================================================================
# Scripted Models
# ==============================================================================

def text_response(text: str, usage: Usage | None = None, finish_reason: str = "stop") -> ModelResponse:
    return ModelResponse(
        message=Message(role="assistant", content=[TextContent(text=text)]),
        finish_reason=finish_reason,
        usage=usage,
    )


def tool_response(*calls: tuple[str, dict[str, Any]], usage: Usage | None = None) -> ModelResponse:
    return ModelResponse(
        message=Message(role="assistant", content=[
            ToolUseContent(id=f"call_{i}", name=name, input=input)
            for i, (name, input) in enumerate(calls)
        ]),
        finish_reason="tool-calls",
        usage=usage,
    )


class ScriptedModel:
    """LanguageModel replaying a fixed list of responses. The last one repeats forever."""

    def __init__(self, responses: list[ModelResponse | Exception], model_id: str = "fake/model", delay: float = 0.0):
        self.model_id = model_id
        self.responses = responses
        self.delay = delay
        self.requests: list[ModelRequest] = []

    async def generate(self, request: ModelRequest) -> ModelResponse:
        # Snapshot, the executor keeps appending to the same conversation.
        self.requests.append(request.model_copy(update={"messages": list(request.messages)}))
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses[min(len(self.requests), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def scripted_model():
    """Factory fixture building ScriptedModel instances."""
    return ScriptedModel


@pytest.fixture
def responses():
    """Helpers building model responses."""
    class Responses:
        text = staticmethod(text_response)
        tool = staticmethod(tool_response)
    return Responses


# ==============================================================================
# Fake Executors
# ==============================================================================

class FakeExecutor:
    """Executor returning canned results keyed by input. Records every call."""

    def __init__(
        self,
        outputs: dict[str, Any] | None = None,
        default: Any = None,
        delay: float = 0.0,
        finish_reason: str = "stop",
        error: str | None = None,
        raises: Exception | None = None,
        usage: Usage | None = None,
    ):
        self.outputs = outputs or {}
        self.default = default
        self.delay = delay
        self.finish_reason = finish_reason
        self.error = error
        self.raises = raises
        self.usage = usage
        self.calls: list[str] = []

    async def __call__(self, prompt, input: str) -> ExecutionResult:
        self.calls.append(input)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        return ExecutionResult(
            output=self.outputs.get(input, self.default),
            steps=[],
            finish_reason=self.finish_reason,
            usage=self.usage,
            error=self.error,
        )


@pytest.fixture
def fake_executor():
    """Factory fixture building FakeExecutor instances."""
    return FakeExecutor


@pytest.fixture
def executor_factory():
    """Build an executor_factory resolving configs through a `{model: executor}` mapping."""
    def factory(executors: dict[str, Any]):
        def create(config: ExecutorConfig):
            return executors[config.label]
        return create
    return factory
