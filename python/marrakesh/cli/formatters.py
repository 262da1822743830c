from collections.abc import Callable

from rich.text import Text

from ..testing.matchers import format_diff

__all__ = ["BarChartItem", "create_bar_chart", "format_diff", "format_duration", "format_tokens", "truncate"]


def format_duration(ms: float) -> str:
    """Format a duration in milliseconds: `850ms`, `1.50s`, `2m 5s`."""
    if ms < 1000:
        return f"{round(ms)}ms"
    if ms < 60000:
        return f"{ms / 1000:.2f}s"
    minutes = int(ms // 60000)
    seconds = round((ms % 60000) / 1000)
    return f"{minutes}m {seconds}s"


def format_tokens(tokens: float) -> str:
    return f"{round(tokens):,}"


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(width - 3, 0)] + "..."


class BarChartItem:
    """One bar of a horizontal bar chart."""

    def __init__(
        self,
        label: str,
        value: float,
        color: str | None = None,
        format_value: Callable[[float], str] | None = None,
    ) -> None:
        self.label = label
        self.value = value
        self.color = color
        self.format_value = format_value

    def __repr__(self) -> str:
        return f"BarChartItem(label={self.label!r}, value={self.value!r})"


def create_bar_chart(data: list[BarChartItem], max_width: int = 40) -> list[Text]:
    """Render horizontal bars scaled against the largest value. Empty when every value is 0."""
    if not data:
        return []
    max_value = max(item.value for item in data)
    if max_value <= 0:
        return []

    lines = []
    for item in data:
        ratio = item.value / max_value
        bar_length = round(ratio * max_width)
        display_value = item.format_value(item.value) if item.format_value else f"{item.value:,}"
        line = Text("  ")
        line.append(truncate(item.label, 15).ljust(15))
        line.append(" ")
        line.append("▓" * bar_length, style=item.color or "")
        line.append(" " * (max_width - bar_length))
        line.append(f" {display_value} ({ratio * 100:.0f}%)")
        lines.append(line)
    return lines

