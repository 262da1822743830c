import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog
from watchfiles import Change, awatch

from .runner import IGNORED_DIRS, RunnerResults, TestRunner

logger = structlog.get_logger("marrakesh.cli.watch")

WATCHED_SUFFIXES = frozenset([".py", ".yaml", ".yml", ".json"])


def _watch_filter(change: Change, path: str) -> bool:
    p = Path(path)
    if any(part in IGNORED_DIRS for part in p.parts):
        return False
    return change != Change.deleted and p.suffix in WATCHED_SUFFIXES


class Watcher:
    """Reruns the test suites whenever a watched file changes."""

    def __init__(self, runner: TestRunner, pattern: str, root: Path | None = None) -> None:
        self.runner = runner
        self.pattern = pattern
        self.root = root or Path.cwd()
        self.shutdown_event = asyncio.Event()

    async def run_once(self, on_results: Callable[[RunnerResults], Awaitable[None] | None]) -> RunnerResults | None:
        try:
            results = await self.runner.find_and_run(self.pattern)
        except Exception as e:
            logger.error("watch_run_failed", error=str(e), exc_info=True)
            self.runner.reporter.error(f"Error running tests: {e}")
            return None
        res = on_results(results)
        if asyncio.iscoroutine(res):
            await res
        return results

    async def start(self, on_results: Callable[[RunnerResults], Awaitable[None] | None]) -> None:
        """Run once, then rerun on every debounced batch of changes until `shutdown()`."""
        await self.run_once(on_results)
        async for changes in awatch(
            self.root,
            watch_filter=_watch_filter,
            debounce=300,
            stop_event=self.shutdown_event,
        ):
            changed = sorted({Path(os.path.relpath(path, self.root)).as_posix() for _, path in changes})
            logger.debug("files_changed", paths=changed)
            self.runner.reporter.file_changed(changed)
            await self.run_once(on_results)

    def shutdown(self) -> None:
        self.shutdown_event.set()
