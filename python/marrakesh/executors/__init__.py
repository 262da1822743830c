# ruff: noqa: F401
from .executor import LLMExecutor, create_executor
from .types import ExecutionResult, ExecutionStep, Executor, ExecutorConfig, FinishReason, ToolCallRecord
