import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ..testing.types import EvalResult, TestCompleteEvent, TestResults, TestStartEvent
from ..utils import to_jsonable
from .formatters import BarChartItem, create_bar_chart, format_diff, format_duration, format_tokens, truncate

if TYPE_CHECKING:
    from .runner import RunnerResults

PASS_ICON = "✅"
FAIL_ICON = "❌"

# Bar colors, one per executor column.
CHART_COLORS = ["cyan", "magenta", "yellow", "blue", "green", "red", "bright_cyan", "bright_magenta"]


class Reporter:
    """Renders suite progress and results to the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def start_run(self) -> None:
        self.console.print()
        self.console.rule("[bold]Marrakesh Tests[/bold]", style="blue")
        self.console.print()

    def watch_mode(self) -> None:
        self.console.print("[bold blue]Watch mode enabled[/bold blue] [dim](press Ctrl+C to exit)[/dim]")
        self.console.print()

    def file_changed(self, paths: list[str]) -> None:
        self.console.print()
        self.console.rule(f"[bold]File changed:[/bold] {escape(', '.join(paths))}", style="blue")

    def files_discovered(self, count: int) -> None:
        file_label = "file" if count == 1 else "files"
        self.console.print(f"[dim]Found {count} test {file_label}[/dim]")
        self.console.print()

    def suite_starting(self, name: str) -> None:
        self.console.print(Text(name, style="bold cyan"))

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def on_progress(self, event: TestStartEvent | TestCompleteEvent) -> None:
        if isinstance(event, TestStartEvent):
            self.test_starting(event.data.current, event.data.total, event.data.input)
        else:
            self.test_completed(event.data)

    def test_starting(self, current: int, total: int, input: str) -> None:
        line = Text("   ")
        line.append(f"[{current}/{total}]", style="dim")
        line.append(f" {truncate(input, 60)}")
        self.console.print(line, highlight=False)

    def test_completed(self, result: EvalResult) -> None:
        for step in result.steps or []:
            for tool_call in step.tool_calls or []:
                input_str = json.dumps(to_jsonable(tool_call.input), ensure_ascii=False)
                line = Text("       ")
                line.append(f"🔧 {tool_call.tool_name}({truncate(input_str, 40)})", style="dim")
                if tool_call.error:
                    line.append(" (error)", style="red")
                self.console.print(line, highlight=False)

        status = Text("       ")
        if result.passed:
            status.append(f"{PASS_ICON} Passed", style="green")
        else:
            status.append(f"{FAIL_ICON} Failed", style="red")
        if result.executor is not None:
            status.append(f" {result.executor.model}", style="bold")
        status.append(f" ({format_duration(result.duration_ms)})", style="dim")
        self.console.print(status)

        if not result.passed and result.error:
            self.console.print(Text(f"          Error: {result.error}", style="red"))
        elif not result.passed and result.has_expected:
            diff = format_diff(result.expected, result.output)
            self.console.print(Text("\n".join(f"          {line}" for line in diff.splitlines()), style="dim"))

    def print_results(self, results: "RunnerResults") -> None:
        self.console.print()
        for suite_results in results.suite_results:
            if suite_results.results.executor_results:
                self.print_matrix(suite_results.name, suite_results.results)
        self.print_summary(results)

    def print_matrix(self, name: str, results: TestResults) -> None:
        """Comparison table: one row per test case, one column per executor."""
        executor_results = results.executor_results or {}
        labels = list(executor_results.keys())

        table = Table(title=Text(name, style="bold cyan"), title_justify="left", show_lines=True)
        table.add_column("Test Case", max_width=40)
        for label in labels:
            table.add_column(Text(label), justify="center", no_wrap=True)

        # Cases with the same input still get their own row.
        rows: dict[int | str, list[EvalResult]] = {}
        for result in results.results:
            rows.setdefault(result.row if result.row is not None else result.input, []).append(result)

        for row_results in rows.values():
            case_cell = Text(truncate(row_results[0].input, 35))
            tools = []
            for result in row_results:
                tools.extend(t for t in result.tools_used if t not in tools)
            if tools:
                case_cell.append(f"\nTools: {', '.join(tools)}", style="dim")

            cells = []
            for label in labels:
                cell_results = [r for r in row_results if r.executor_label == label]
                cells.append(" ".join(
                    f"{PASS_ICON if r.passed else FAIL_ICON} ({format_duration(r.duration_ms)})"
                    for r in cell_results
                ))
            table.add_row(case_cell, *cells)

        self.console.print(table)
        self.console.print()

        self.console.print("[bold]Executor Summary:[/bold]")
        for label, summary in executor_results.items():
            style = "green" if summary.failed == 0 else "red"
            line = f"  {label}: {summary.passed}/{summary.total} passed ({summary.pass_rate * 100:.1f}%)"
            self.console.print(Text(line, style=style), highlight=False)
        self.console.print()

        latency = [
            BarChartItem(label, summary.avg_duration_ms, CHART_COLORS[i % len(CHART_COLORS)], format_duration)
            for i, (label, summary) in enumerate(executor_results.items())
        ]
        self._print_chart("Average latency", latency)

        tokens = [
            BarChartItem(label, summary.total_tokens, CHART_COLORS[i % len(CHART_COLORS)], format_tokens)
            for i, (label, summary) in enumerate(executor_results.items())
        ]
        self._print_chart("Total tokens", tokens)

    def _print_chart(self, title: str, data: list[BarChartItem]) -> None:
        lines = create_bar_chart(data)
        if not lines:
            return
        self.console.print(f"[bold]{title}:[/bold]")
        for line in lines:
            self.console.print(line)
        self.console.print()

    def print_summary(self, results: "RunnerResults") -> None:
        """Print pytest-style summary."""
        parts = []
        if results.failed > 0:
            parts.append(f"[bold red]{results.failed} failed[/bold red]")
        if results.passed > 0:
            parts.append(f"[bold green]{results.passed} passed[/bold green]")
        summary_text = ", ".join(parts) if parts else "[dim]no tests run[/dim]"

        pass_rate = results.passed / results.total * 100 if results.total else 0.0
        duration_str = format_duration(results.duration_ms)

        if results.failed > 0:
            status_style = "red"
            status_char = "!"
        else:
            status_style = "green"
            status_char = "="

        self.console.rule(
            f"{summary_text} [dim]({pass_rate:.1f}%) in {duration_str}[/dim]",
            style=status_style,
            characters=status_char,
        )
        self.console.print()
