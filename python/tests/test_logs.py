import json
import logging
from io import StringIO

import pytest
import structlog
from marrakesh.logs import NOISY_LOGGERS, EventFilter, setup_logging, suite_context


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    noisy = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    root.handlers = handlers
    root.setLevel(level)
    for name, noisy_level in noisy.items():
        logging.getLogger(name).setLevel(noisy_level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestEventFilter:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MARRAKESH_SUPPRESS_EVENTS", "suite_run_started, analytics_batch_sent,")
        assert EventFilter().events == {"suite_run_started", "analytics_batch_sent"}

    def test_explicit_events(self, monkeypatch):
        monkeypatch.setenv("MARRAKESH_SUPPRESS_EVENTS", "suite_run_started")
        event_filter = EventFilter(["test_timeout"])

        with pytest.raises(structlog.DropEvent):
            event_filter(None, "info", {"event": "test_timeout"})
        event = {"event": "suite_run_started"}
        assert event_filter(None, "info", event) is event


class TestSetupLogging:

    def test_explicit_level_wins_over_env(self, monkeypatch, restore_logging):
        monkeypatch.setenv("MARRAKESH_LOG_LEVEL", "DEBUG")
        setup_logging(level="error")
        assert logging.getLogger().level == logging.ERROR

    def test_level_from_env(self, monkeypatch, restore_logging):
        monkeypatch.setenv("MARRAKESH_LOG_LEVEL", "WARNING")
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_setup_is_idempotent(self, restore_logging):
        setup_logging(fmt="dev")
        setup_logging(fmt="dev")
        formatters = [
            handler for handler in logging.getLogger().handlers
            if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)
        ]
        assert len(formatters) == 1

    def test_quiets_http_loggers(self, restore_logging):
        setup_logging(level="INFO")
        assert logging.getLogger("httpx").level == logging.WARNING
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_json_lines_carry_suite_context(self, restore_logging):
        stream = StringIO()
        setup_logging(level="INFO", fmt="json", suppress=["noise"], stream=stream)
        logger = structlog.get_logger("marrakesh.tests")

        with suite_context("weather", "run-1"):
            logger.info("row_done", row=1)
            logger.info("noise")
        logger.info("after_run")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [line["event"] for line in lines] == ["row_done", "after_run"]
        assert lines[0]["suite"] == "weather"
        assert lines[0]["test_run_id"] == "run-1"
        assert lines[0]["logger"] == "marrakesh.tests"
        assert "suite" not in lines[1]
