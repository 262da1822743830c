import argparse
import asyncio
import signal
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .. import __version__
from ..analytics import AnalyticsClient
from ..logs import setup_logging
from .display import Reporter
from .runner import DEFAULT_PATTERN, TestRunner
from .watch import Watcher

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marrakesh",
        description="Marrakesh CLI. Run prompt test suites against one or more models.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit.",
    )
    subparsers = parser.add_subparsers(dest="command")

    test_parser = subparsers.add_parser("test", help="Run prompt tests.")
    test_parser.add_argument(
        "pattern",
        nargs="?",
        type=str,
        default=DEFAULT_PATTERN,
        help="Test file, directory or glob pattern. Use ::name to run a single suite "
        f"(e.g., prompts/weather.prompt.py::weather_suite). Defaults to '{DEFAULT_PATTERN}'.",
    )
    test_parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Watch mode. Rerun tests on file changes.",
    )
    test_parser.add_argument(
        "--bail",
        action="store_true",
        help="Stop after the first failing test case (row granularity) and skip the remaining suites.",
    )
    test_parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level. Defaults to WARNING.",
    )
    return parser


async def run_tests(pattern: str, bail: bool) -> int:
    reporter = Reporter(console=console)
    async with AnalyticsClient() as analytics:
        runner = TestRunner(bail=bail, analytics=analytics, reporter=reporter)
        reporter.start_run()
        results = await runner.find_and_run(pattern)
        reporter.print_results(results)
    return results.exit_code


async def watch_tests(pattern: str, bail: bool) -> int:
    reporter = Reporter(console=console)
    async with AnalyticsClient() as analytics:
        runner = TestRunner(bail=bail, analytics=analytics, reporter=reporter)
        watcher = Watcher(runner=runner, pattern=pattern)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, watcher.shutdown)

        reporter.watch_mode()
        await watcher.start(reporter.print_results)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        console.print(f"marrakesh {__version__}")
        return 0

    if args.command != "test":
        parser.print_help()
        return 1

    load_dotenv(override=True)

    setup_logging(level=args.log_level)

    try:
        if args.watch:
            return asyncio.run(watch_tests(args.pattern, args.bail))
        return asyncio.run(run_tests(args.pattern, args.bail))
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
