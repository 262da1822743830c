from typing import Protocol, runtime_checkable

from .types import TestCaseRecord, TestRunRecord


@runtime_checkable
class AnalyticsSink(Protocol):
    """Receiver of test telemetry.

    Both methods are fire-and-forget: they return immediately, never raise
    and never make the caller wait on network I/O.
    """

    def track_test_run(self, record: TestRunRecord) -> None: ...

    def track_test_case(self, record: TestCaseRecord) -> None: ...


class NullAnalyticsSink:
    """Sink that discards every record."""

    def track_test_run(self, record: TestRunRecord) -> None:
        pass

    def track_test_case(self, record: TestCaseRecord) -> None:
        pass
