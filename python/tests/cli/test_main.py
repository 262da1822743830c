import textwrap

import pytest
from marrakesh import __version__
from marrakesh.cli import __main__ as cli_main
from marrakesh.cli.__main__ import build_parser, main

PASSING_SUITE = textwrap.dedent("""
    from marrakesh import ExecutionResult, Prompt, TestSuite


    async def echo(prompt, input):
        return ExecutionResult(output=input, finish_reason="stop")


    echo_suite = TestSuite(
        Prompt(name="echo", system_prompt="Repeat the input."),
        cases=[{"input": "hi", "expect": "hi"}],
        executors=["fake/one"],
        executor_factory=lambda config: echo,
    )
""")


@pytest.fixture(autouse=True)
def logging_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(cli_main, "setup_logging", lambda **kwargs: calls.append(kwargs))
    return calls


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["test"])
    assert args.command == "test"
    assert args.pattern == "**/*.prompt.py"
    assert not args.watch
    assert not args.bail
    assert args.log_level == "WARNING"


def test_parser_flags() -> None:
    args = build_parser().parse_args(["test", "prompts/::weather", "--watch", "--bail", "--log-level", "DEBUG"])
    assert args.pattern == "prompts/::weather"
    assert args.watch
    assert args.bail
    assert args.log_level == "DEBUG"


def test_version(capsys) -> None:
    assert main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_no_command() -> None:
    assert main([]) == 1


def test_run_passing_suite(tmp_path) -> None:
    (tmp_path / "echo.prompt.py").write_text(PASSING_SUITE)
    assert main(["test", str(tmp_path)]) == 0


def test_run_failing_suite(tmp_path) -> None:
    (tmp_path / "echo.prompt.py").write_text(PASSING_SUITE.replace('"expect": "hi"', '"expect": "bye"'))
    assert main(["test", str(tmp_path), "--bail"]) == 1


def test_log_level_is_passed_to_logging(tmp_path, logging_calls) -> None:
    main(["test", str(tmp_path), "--log-level", "ERROR"])
    assert logging_calls == [{"level": "ERROR"}]


def test_error_message_with_brackets(monkeypatch, capsys) -> None:
    async def failing_run(pattern, bail):
        raise RuntimeError("bad [/b] tag in [bold]config")

    monkeypatch.setattr(cli_main, "run_tests", failing_run)
    assert main(["test"]) == 1
    assert "Error: bad [/b] tag in [bold]config" in capsys.readouterr().out
