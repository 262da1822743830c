# ruff: noqa: F401
from .matchers import create_match_error, format_diff, match, match_partial
from .suite import TestSuite, load_test_cases, run_single
from .types import (
    EvalResult,
    ExecutorMetadata,
    ExecutorSummary,
    ProgressEvent,
    TestCase,
    TestCompleteEvent,
    TestResults,
    TestStartEvent,
)
