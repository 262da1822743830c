from typing import Any

from pydantic import BaseModel, Field

from .utils import get_current_timestamp


class TestRunRecord(BaseModel):
    """One completed suite run."""
    __test__ = False

    test_run_id: str
    prompt_id: str
    prompt_name: str
    total_tests: int
    passed_tests: int
    failed_tests: int
    duration_ms: int
    timestamp: str = Field(default_factory=get_current_timestamp)
    environment: str = "local"
    git_commit: str | None = None
    account_id: str | None = None
    organization_id: str | None = None


class TestCaseRecord(BaseModel):
    """One completed (test case x executor) evaluation."""
    __test__ = False

    test_case_id: str
    test_run_id: str
    prompt_id: str
    input: str
    expected_output: str | None = None
    actual_output: str
    passed: bool
    duration_ms: int
    execution_id: str
    model: str | None = None
    error_message: str | None = None
    timestamp: str = Field(default_factory=get_current_timestamp)


class IngestionRequest(BaseModel):
    """Body of a POST to the ingestion endpoint. Unused lists are sent empty."""

    tool_calls: list[dict[str, Any]] = Field(default_factory=list)
    prompt_metadata: list[dict[str, Any]] = Field(default_factory=list)
    prompt_executions: list[dict[str, Any]] = Field(default_factory=list)
    test_runs: list[TestRunRecord] = Field(default_factory=list)
    test_cases: list[TestCaseRecord] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return (
            len(self.tool_calls)
            + len(self.prompt_metadata)
            + len(self.prompt_executions)
            + len(self.test_runs)
            + len(self.test_cases)
        )
