import logging
import os
import sys
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog

# SDK loggers that log every HTTP request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


class EventFilter:
    """Structlog processor dropping events by name.

    Names come from MARRAKESH_SUPPRESS_EVENTS (comma separated) unless given explicitly,
    e.g. "analytics_batch_sent,suite_run_started".
    """

    def __init__(self, events: Iterable[str] | None = None) -> None:
        if events is None:
            events = os.getenv("MARRAKESH_SUPPRESS_EVENTS", "").split(",")
        self.events = frozenset(e.strip() for e in events if e.strip())

    def __call__(self, _: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        if event_dict.get("event") in self.events:
            raise structlog.DropEvent
        return event_dict


@contextmanager
def suite_context(suite: str, test_run_id: str) -> Iterator[None]:
    """Tag every event logged inside the block (and in tasks spawned from it) with the suite run."""
    with structlog.contextvars.bound_contextvars(suite=suite, test_run_id=test_run_id):
        yield


def setup_logging(
    level: str | None = None,
    fmt: str | None = None,
    suppress: Iterable[str] | None = None,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging through a single stderr handler.

    Args:
        level: Log level name. Falls back to MARRAKESH_LOG_LEVEL, then INFO.
        fmt: "dev" for the console renderer, anything else for JSON lines.
            Falls back to MARRAKESH_LOG_FORMAT.
        suppress: Event names to drop. Falls back to MARRAKESH_SUPPRESS_EVENTS.
        stream: Where log lines go. Defaults to stderr so reporter output on stdout stays clean.
    """
    level = (level or os.getenv("MARRAKESH_LOG_LEVEL") or "INFO").upper()
    dev_logs = (fmt or os.getenv("MARRAKESH_LOG_FORMAT", "")) == "dev"

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        EventFilter(suppress),
        structlog.dev.set_exc_info if dev_logs else structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = structlog.dev.ConsoleRenderer() if dev_logs else structlog.processors.JSONRenderer()
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    ))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    noisy_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
