# ruff: noqa: F401
from .analytics import AnalyticsClient, AnalyticsSink, NullAnalyticsSink
from .core import LanguageModel, ModelRequest, ModelResponse, Prompt, Tool, tool
from .executors import ExecutionResult, ExecutionStep, ExecutorConfig, LLMExecutor, create_executor
from .testing import (
    EvalResult,
    TestCase,
    TestResults,
    TestSuite,
    create_match_error,
    format_diff,
    load_test_cases,
    match,
    match_partial,
)

try:
    from ._version import __version__  # type: ignore
except ImportError:
    __version__ = "0.0.0.dev0"
