import pytest
from marrakesh.cli.formatters import BarChartItem, create_bar_chart, format_duration, format_tokens, truncate


@pytest.mark.parametrize(("ms", "expected"), [
    (0, "0ms"),
    (850, "850ms"),
    (999.4, "999ms"),
    (1000, "1.00s"),
    (1500, "1.50s"),
    (59999, "60.00s"),
    (60000, "1m 0s"),
    (125000, "2m 5s"),
])
def test_format_duration(ms, expected) -> None:
    assert format_duration(ms) == expected


def test_format_tokens() -> None:
    assert format_tokens(0) == "0"
    assert format_tokens(1234567) == "1,234,567"
    assert format_tokens(12.6) == "13"


def test_truncate() -> None:
    assert truncate("short", 10) == "short"
    assert truncate("a long test case input", 10) == "a long ..."
    assert len(truncate("x" * 100, 35)) == 35


class TestBarChart:

    def test_empty(self):
        assert create_bar_chart([]) == []

    def test_all_zero(self):
        assert create_bar_chart([BarChartItem("a", 0), BarChartItem("b", 0)]) == []

    def test_bars_scale_to_max(self):
        lines = create_bar_chart([
            BarChartItem("openai/gpt-4o-mini", 200, "cyan", format_duration),
            BarChartItem("anthropic/claude", 100, "magenta", format_duration),
        ], max_width=20)

        assert len(lines) == 2
        first, second = (line.plain for line in lines)
        assert first.count("▓") == 20
        assert second.count("▓") == 10
        assert first.endswith(" 200ms (100%)")
        assert second.endswith(" 100ms (50%)")
        assert first.startswith("  openai/gpt-4...")
        assert len(first.split(" 200ms")[0]) == len(second.split(" 100ms")[0])

    def test_default_value_format(self):
        line = create_bar_chart([BarChartItem("tokens", 1500)])[0]
        assert line.plain.endswith(" 1,500 (100%)")
