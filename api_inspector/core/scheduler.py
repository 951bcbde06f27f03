"""Batched load test runner."""

import asyncio
import logging
import math
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Union

import httpx

from .config import InspectorSettings, LoadTestConfig
from .executor import RequestExecutor, RequestSample
from .observers import CompositeLoadTestObserver, LoadTestObserver, NullLoadTestObserver
from .progress import ProgressReporter
from .results import LoadTestResult, aggregate_statistics

logger = logging.getLogger(__name__)


def plan_batches(total_requests: int, batch_size: int) -> List[int]:
    """Split ``total_requests`` into batches of at most ``batch_size``.

    Returns the size of every batch; the last one may be short. An empty
    list means there is nothing to run.
    """
    if total_requests <= 0:
        return []
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    batch_count = math.ceil(total_requests / batch_size)
    return [min(batch_size, total_requests - i * batch_size) for i in range(batch_count)]


class LoadTestRunner:
    """
    Drives a load test from a configuration to a final ``LoadTestResult``.

    Requests are sent in sequential batches; each batch fans out up to the
    effective concurrency and is awaited as a whole before the next one
    starts. Per-request failures are counted, never raised.
    """

    def __init__(
        self,
        settings: Optional[InspectorSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        observer: Optional[LoadTestObserver] = None,
    ):
        self.settings = settings or InspectorSettings()
        self._client = client
        base_observer = observer or NullLoadTestObserver()
        self.observer = CompositeLoadTestObserver([base_observer])
        self._cancel_requested = False

    def attach_observer(self, observer: Optional[LoadTestObserver]) -> None:
        """Attach an additional observer (e.g., a terminal dashboard)."""
        self.observer.add_observer(observer)

    def cancel(self) -> None:
        """Stop the current (or next) run before its next batch starts."""
        self._cancel_requested = True

    def _should_stop(self, cancel_event: Optional[asyncio.Event]) -> bool:
        return self._cancel_requested or (cancel_event is not None and cancel_event.is_set())

    @asynccontextmanager
    async def _client_context(self, max_connections: int) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        limits = httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_connections)
        async with httpx.AsyncClient(
            limits=limits,
            timeout=httpx.Timeout(self.settings.request_timeout),
        ) as client:
            yield client

    def run_sync(self, config: Union[LoadTestConfig, Dict[str, Any]]) -> LoadTestResult:
        """Run the load test from synchronous code."""
        return asyncio.run(self.run(config))

    async def run(
        self,
        config: Union[LoadTestConfig, Dict[str, Any]],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> LoadTestResult:
        """
        Run the load test asynchronously.

        Args:
            config: Validated config, or a raw dict as sent by the UI
            cancel_event: Optional event; when set, no further batches are started

        Returns:
            LoadTestResult. A run that cannot be scheduled returns
            ``LoadTestResult.failed`` instead of raising.
        """
        try:
            result = await self._execute(config, cancel_event)
        except Exception as e:
            logger.exception(f"Load test could not run: {e}")
            result = LoadTestResult.failed(str(e) or type(e).__name__)
            self.observer.on_run_error(error=result.error)
        finally:
            self._cancel_requested = False

        self.observer.on_run_complete(result=result.to_event())
        return result

    async def _execute(
        self,
        config: Union[LoadTestConfig, Dict[str, Any]],
        cancel_event: Optional[asyncio.Event],
    ) -> LoadTestResult:
        if not isinstance(config, LoadTestConfig):
            config = LoadTestConfig.model_validate(config)
        config.log_clamping()

        batch_size = config.effective_concurrency
        total = config.effective_total_requests
        batches = plan_batches(total, batch_size)
        url = self.settings.url_for(config.endpoint)

        logger.info(
            f"Starting load test: {config.method} {url}, {total} requests, "
            f"concurrency {batch_size}, {len(batches)} batches"
        )
        self.observer.on_run_start(config=config.to_dict(), batch_sizes=batches)

        if not batches:
            logger.info("Load test has no requests to send")
            return LoadTestResult()

        reporter = ProgressReporter(self.observer)
        latencies: List[float] = []
        success_count = 0
        error_count = 0
        completed = 0
        cancelled = False

        async with self._client_context(batch_size) as client:
            executor = RequestExecutor(client, timeout=self.settings.request_timeout)
            start = time.perf_counter()

            for index, requests_in_batch in enumerate(batches):
                if self._should_stop(cancel_event):
                    cancelled = True
                    logger.info(f"Load test cancelled after {completed}/{total} requests")
                    break

                samples = await asyncio.gather(
                    *(executor.execute(url, config.method, config.body) for _ in range(requests_in_batch)),
                    return_exceptions=True,
                )
                for sample in samples:
                    if isinstance(sample, RequestSample):
                        latencies.append(sample.latency_ms)
                        if sample.success:
                            success_count += 1
                            continue
                    error_count += 1
                completed += requests_in_batch

                reporter.report(index, completed, total, success_count, error_count)

                if index < len(batches) - 1:
                    await asyncio.sleep(self.settings.batch_pause)

            duration_ms = (time.perf_counter() - start) * 1000

        result = aggregate_statistics(
            latencies,
            total_requests=completed,
            success_count=success_count,
            error_count=error_count,
            duration_ms=duration_ms,
            cancelled=cancelled,
        )
        logger.info(
            f"Load test completed in {result.duration_ms:.0f}ms: "
            f"avg {result.avg_latency_ms:.2f}ms, {result.requests_per_second:.2f} req/s, "
            f"success {result.success_rate_percent:.1f}%"
        )
        return result
