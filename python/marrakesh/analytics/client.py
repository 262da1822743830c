import asyncio
from typing import Any

import httpx
import structlog

from ..config import AnalyticsConfig
from .types import IngestionRequest, TestCaseRecord, TestRunRecord

logger = structlog.get_logger("marrakesh.analytics.client")

USER_AGENT = "Marrakesh-SDK"


class AnalyticsClient:
    """Fire-and-forget client for the analytics ingestion API.

    `track_*` calls only append to an in-memory queue and make sure a single
    background drain task is running. The drain task batches queued records
    and POSTs them, retrying 429, 5xx and network failures with exponential
    backoff. Failures are logged and dropped, never raised.

    Records tracked outside a running event loop stay queued until `flush()`.
    Use `async with AnalyticsClient() as client:` (or call `close()`) so the
    queue is drained before the process exits.
    """

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config if config is not None else AnalyticsConfig.from_env()
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._pending: list[tuple[str, TestRunRecord | TestCaseRecord]] = []
        self._drain_task: asyncio.Task | None = None
        self._closed = False

    @property
    def enabled(self) -> bool:
        return self.config.enabled and not self._closed

    @property
    def pending(self) -> int:
        """Number of records queued and not yet handed to the HTTP client."""
        return len(self._pending)

    def track_test_run(self, record: TestRunRecord) -> None:
        self._enqueue("test_runs", record)

    def track_test_case(self, record: TestCaseRecord) -> None:
        self._enqueue("test_cases", record)

    def _enqueue(self, kind: str, record: TestRunRecord | TestCaseRecord) -> None:
        if not self.enabled:
            return
        try:
            if self.config.debug:
                logger.info("analytics_record_tracked", kind=kind, record=record.model_dump())
            self._pending.append((kind, record))
            self._schedule_drain()
        except Exception as e:
            self._log_failure("analytics_track_failed", kind=kind, error=str(e))

    def _schedule_drain(self) -> None:
        if self._drain_task is not None and not self._drain_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._drain_task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending:
            batch = self._pending[: self.config.batch_size]
            del self._pending[: self.config.batch_size]
            try:
                await self._send(batch)
            except Exception as e:
                self._log_failure("analytics_batch_dropped", records=len(batch), error=str(e))

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http is None:
            api_key = self.config.api_key.get_secret_value() if self.config.api_key else ""
            self._http = httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(self.config.timeout),
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": api_key,
                    "User-Agent": USER_AGENT,
                },
            )
        return self._http

    async def _send(self, batch: list[tuple[str, Any]]) -> None:
        request = IngestionRequest()
        for kind, record in batch:
            getattr(request, kind).append(record)
        body = request.model_dump_json()

        http = self._get_http_client()
        max_retries = self.config.max_retries
        for attempt in range(max_retries + 1):
            try:
                res = await http.post(self.config.endpoint, content=body)
                if res.is_success:
                    logger.debug("analytics_batch_sent", records=request.size, status_code=res.status_code)
                    return
                # Don't retry on client errors (4xx except 429)
                if 400 <= res.status_code < 500 and res.status_code != 429:
                    self._log_failure("analytics_request_rejected", status_code=res.status_code, body=res.text)
                    return
                self._log_failure("analytics_request_failed", status_code=res.status_code, attempt=attempt + 1)
            except httpx.HTTPError as e:
                self._log_failure("analytics_request_failed", error=str(e), attempt=attempt + 1)
            if attempt < max_retries:
                await asyncio.sleep(0.1 * (2 ** attempt))  # Exponential backoff: 100ms, 200ms, 400ms
        self._log_failure("analytics_batch_dropped", records=request.size)

    def _log_failure(self, event: str, **kwargs: Any) -> None:
        if self.config.debug:
            logger.warning(event, endpoint=self.config.endpoint, **kwargs)
        else:
            logger.debug(event, endpoint=self.config.endpoint, **kwargs)

    async def flush(self) -> None:
        """Wait until every queued record has been sent (or dropped)."""
        while self._pending or (self._drain_task is not None and not self._drain_task.done()):
            self._schedule_drain()
            if self._drain_task is not None:
                await asyncio.shield(self._drain_task)

    async def close(self) -> None:
        """Flush pending records and release the HTTP connection pool."""
        await self.flush()
        self._closed = True
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "AnalyticsClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
