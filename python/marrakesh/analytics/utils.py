import hashlib
import math
import os
from datetime import UTC, datetime

from ..utils import generate_id

# Rough cost estimates per 1K tokens (in USD). Keys are matched as substrings of the model name.
COST_PER_1K_TOKENS: dict[str, float] = {
    "gpt-4-turbo": 0.01,
    "gpt-4": 0.03,
    "gpt-3.5-turbo": 0.001,
    "claude-3-opus": 0.015,
    "claude-3-sonnet": 0.003,
    "claude-3-haiku": 0.00025,
}
DEFAULT_COST_PER_1K_TOKENS = 0.01

CI_ENV_VARS = ("CI", "GITHUB_ACTIONS", "GITLAB_CI", "BUILDKITE", "CIRCLECI")
GIT_COMMIT_ENV_VARS = ("GITHUB_SHA", "CI_COMMIT_SHA", "BUILDKITE_COMMIT", "CIRCLE_SHA1", "GIT_COMMIT")


def generate_execution_id() -> str:
    return generate_id()


def generate_test_run_id() -> str:
    return generate_id()


def generate_prompt_id(system_prompt: str, tool_names: list[str]) -> str:
    """Deterministic id for a prompt: the same system prompt and tool set always map to the same id."""
    content = system_prompt + ",".join(sorted(tool_names))
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def estimate_tokens(text: str | None) -> int:
    """Approximate token count using the usual ~4 characters per token heuristic."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Approximate USD cost of a call. Actual pricing varies by provider."""
    model = model.lower()
    cost_per_1k = next(
        (cost for key, cost in COST_PER_1K_TOKENS.items() if key in model),
        DEFAULT_COST_PER_1K_TOKENS,
    )
    return round((input_tokens + output_tokens) / 1000 * cost_per_1k, 6)


def get_current_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def detect_environment() -> str:
    if any(os.getenv(var) for var in CI_ENV_VARS):
        return "ci"
    return os.getenv("MARRAKESH_ENVIRONMENT", "local")


def detect_git_commit() -> str | None:
    for var in GIT_COMMIT_ENV_VARS:
        if commit := os.getenv(var):
            return commit
    return None


def generate_test_case_id(prompt_id: str, input: str) -> str:
    """Deterministic id for a test case, stable across runs of the same prompt."""
    return hashlib.sha256(f"{prompt_id}:{input}".encode()).hexdigest()[:16]
