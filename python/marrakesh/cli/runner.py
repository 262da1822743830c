import time
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..analytics.sink import AnalyticsSink
from ..testing.suite import TestSuite
from ..testing.types import TestResults
from ..utils import ImportSpec
from .display import Reporter

logger = structlog.get_logger("marrakesh.cli.runner")

DEFAULT_PATTERN = "**/*.prompt.py"

IGNORED_DIRS = frozenset([".git", ".venv", "venv", "node_modules", "dist", "build", "__pycache__", ".tox"])


class LoadedSuite(BaseModel):
    """A TestSuite found in a test file."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    path: Path
    suite: TestSuite


class SuiteResults(BaseModel):
    name: str
    path: Path
    results: TestResults


class RunnerResults(BaseModel):
    """Aggregate over every suite run by the CLI."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    duration_ms: int = 0
    suite_results: list[SuiteResults] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 0 if self.failed == 0 else 1


def parse_pattern(pattern: str) -> tuple[str, str | None]:
    """Split an optional `::suite_name` filter off the pattern."""
    if "::" in pattern:
        path_pattern, suite_name = pattern.rsplit("::", 1)
        return path_pattern, suite_name
    return pattern, None


def _is_ignored(path: Path) -> bool:
    return any(part in IGNORED_DIRS for part in path.parts)


def discover_test_files(pattern: str, root: Path | None = None) -> list[Path]:
    """Find test files. The pattern may be a file, a directory or a glob."""
    root = root or Path.cwd()
    path = Path(pattern).expanduser()
    if not path.is_absolute():
        path = root / path

    if path.is_file():
        return [path.resolve()]

    if path.is_dir():
        candidates = path.glob(DEFAULT_PATTERN)
    else:
        anchor = Path(path.anchor)
        candidates = anchor.glob(path.relative_to(anchor).as_posix())

    files = {
        candidate.resolve()
        for candidate in candidates
        if candidate.is_file() and candidate.suffix == ".py" and not _is_ignored(candidate)
    }
    return sorted(files)


def load_suites(path: Path, suite_filter: str | None = None) -> list[LoadedSuite]:
    """Import a test file and collect the TestSuite instances it defines."""
    module = ImportSpec(path=path).load_module()
    suites = []
    for name, value in vars(module).items():
        if name.startswith("_") or not isinstance(value, TestSuite):
            continue
        if suite_filter and suite_filter not in (name, value.name):
            continue
        suites.append(LoadedSuite(name=name, path=path, suite=value))
    return suites


class TestRunner:
    """Discovers test files, runs their suites and aggregates the results."""
    __test__ = False # This attribute explicitly tells pytest's discover mechanism to skip these classes.

    def __init__(
        self,
        bail: bool = False,
        analytics: AnalyticsSink | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self.bail = bail
        self.analytics = analytics
        self.reporter = reporter or Reporter()

    async def find_and_run(self, pattern: str = DEFAULT_PATTERN) -> RunnerResults:
        path_pattern, suite_filter = parse_pattern(pattern)
        files = discover_test_files(path_pattern)
        self.reporter.files_discovered(len(files))

        errors: list[str] = []
        suites: list[LoadedSuite] = []
        for file in files:
            try:
                suites.extend(load_suites(file, suite_filter))
            except Exception as e:
                logger.debug("test_file_load_failed", path=str(file), exc_info=True)
                errors.append(f"Failed to load {file}: {type(e).__name__}: {e}")
                self.reporter.error(errors[-1])

        results = await self.run_suites(suites)
        results.errors = errors + results.errors
        return results

    async def run_suites(self, suites: list[LoadedSuite]) -> RunnerResults:
        start = time.perf_counter()
        runner_results = RunnerResults()

        for loaded in suites:
            self.reporter.suite_starting(loaded.suite.name)
            try:
                results = await loaded.suite.run(
                    bail=self.bail,
                    on_progress=self.reporter.on_progress,
                    analytics=self.analytics,
                )
            except Exception as e:
                logger.debug("suite_run_failed", suite=loaded.name, exc_info=True)
                runner_results.errors.append(f"Error running {loaded.name}: {e}")
                self.reporter.error(runner_results.errors[-1])
                continue

            runner_results.suite_results.append(SuiteResults(name=loaded.suite.name, path=loaded.path, results=results))
            runner_results.total += results.total
            runner_results.passed += results.passed
            runner_results.failed += results.failed

            if self.bail and results.failed > 0:
                break

        runner_results.duration_ms = round((time.perf_counter() - start) * 1000)
        return runner_results
