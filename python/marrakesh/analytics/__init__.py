# ruff: noqa: F401
from .client import AnalyticsClient
from .sink import AnalyticsSink, NullAnalyticsSink
from .types import IngestionRequest, TestCaseRecord, TestRunRecord
from .utils import (
    detect_environment,
    detect_git_commit,
    estimate_cost,
    estimate_tokens,
    generate_execution_id,
    generate_prompt_id,
    generate_test_case_id,
    generate_test_run_id,
    get_current_timestamp,
)
