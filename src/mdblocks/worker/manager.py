"""Compiler execution manager: debounced, correlated compiles on a worker thread

The pending-request table and the latency metrics are only touched on the
event loop thread; the worker thread hands every response back through
call_soon_threadsafe.
"""

import asyncio
import itertools
import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional

from mdblocks.config import Settings
from mdblocks.errors import CompileTimeoutError, WorkerError
from mdblocks.worker.compiler_worker import CompilerWorker
from mdblocks.worker.metrics import LatencyTracker, check_targets
from mdblocks.worker.protocol import DIRECTIONS, CompileRequest, CompileResponse, MetricsSnapshot
from mdblocks.worker.scheduler import CoalescingScheduler


logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    kind: str
    future: asyncio.Future
    started: float
    timer: asyncio.TimerHandle


class CompilerExecutionManager:
    """Runs both compile directions on a single worker thread.

    Construct once per application and pass it to the code that needs it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        worker: Optional[CompilerWorker] = None,
        executor: Optional[Executor] = None,
        latency: Optional[LatencyTracker] = None,
        ):
        self.settings = settings or Settings()
        self.worker = worker or CompilerWorker(
            preset=self.settings.parser_config, metrics_window=self.settings.metrics_window,
        )
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="mdblocks-compiler")
        self._latency = latency or LatencyTracker(self.settings.metrics_window)
        self._scheduler = CoalescingScheduler()
        self._pending: dict[str, PendingRequest] = {}
        self._ids = itertools.count(1)
        self._closed = False

    async def __aenter__(self) -> "CompilerExecutionManager":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # --- public API ---

    async def submit(self, direction: str, data: str, debounce_ms: Optional[int] = None) -> str:
        """Compile data in the worker after the debounce window for direction."""
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown compile direction: {direction}")
        if self._closed:
            raise WorkerError("Compiler execution manager is closed")
        delay_ms = self.settings.debounce_ms if debounce_ms is None else debounce_ms
        return await self._scheduler.schedule(direction, delay_ms / 1000, lambda: self._dispatch(direction, data))

    async def md_to_html(self, markdown: str, debounce_ms: Optional[int] = None) -> str:
        return await self.submit("mdToHtml", markdown, debounce_ms)

    async def html_to_md(self, html: str, debounce_ms: Optional[int] = None) -> str:
        return await self.submit("htmlToMd", html, debounce_ms)

    async def refresh_metrics(self) -> MetricsSnapshot:
        """Ask the worker for its compile-time metrics (not debounced)."""
        if self._closed:
            raise WorkerError("Compiler execution manager is closed")
        return await self._dispatch("getMetrics", "")

    def metrics(self) -> MetricsSnapshot:
        """Round-trip latency of completed compile requests."""
        return self._latency.snapshot()

    def check_performance_targets(self) -> dict[str, bool]:
        return check_targets(self.metrics(), self.settings.p50_target_ms, self.settings.p95_target_ms)

    def pending_count(self) -> int:
        return len(self._pending)

    def close(self) -> None:
        """Cancel debounced calls, reject in-flight requests and stop the worker."""
        if self._closed:
            return
        self._closed = True
        error = WorkerError("Compiler execution manager closed")
        self._scheduler.cancel_all(error)
        self._reject_all(error)
        self._executor.shutdown(wait=False, cancel_futures=True)

    # --- dispatch and responses ---

    def _next_id(self) -> str:
        return f"req_{next(self._ids)}_{int(time.time() * 1000)}"

    def _dispatch(self, kind: str, data: str) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        request = CompileRequest(type=kind, id=self._next_id(), data=data)
        future = loop.create_future()
        timer = loop.call_later(self.settings.request_timeout_s, self._expire, request.id)
        self._pending[request.id] = PendingRequest(kind, future, time.perf_counter(), timer)

        try:
            job = self._executor.submit(self.worker.handle, request)
        except RuntimeError as e:
            logger.warning("Compiler worker unavailable: %s", e)
            self._reject_all(WorkerError(f"Compiler worker unavailable: {e}"))
            return future

        def done(j: Future) -> None:
            try:
                loop.call_soon_threadsafe(self._on_job_done, request.id, j)
            except RuntimeError:
                logger.debug("Event loop closed before %s completed", request.id)

        job.add_done_callback(done)
        logger.debug("Dispatched %s %s", kind, request.id)
        return future

    def _on_job_done(self, request_id: str, job: Future) -> None:
        if job.cancelled():
            self._reject_all(WorkerError("Compiler worker stopped"))
            return
        exc = job.exception()
        if exc is not None:
            logger.warning("Compiler worker failed on %s: %s", request_id, exc)
            self._reject_all(WorkerError(f"Compiler worker failed: {exc}"))
            return
        self._handle_response(job.result())

    def _handle_response(self, response: CompileResponse) -> None:
        pending = self._pending.pop(response.id, None)
        if pending is None:
            logger.debug("Dropping response for unknown or expired request %s", response.id)
            return
        pending.timer.cancel()
        if pending.future.done():
            return

        outcome: Any
        if response.type == "error":
            pending.future.set_exception(WorkerError(response.message or "Unknown worker error"))
            return
        if response.type == "metrics":
            outcome = response.metrics or MetricsSnapshot()
        elif response.result is None:
            pending.future.set_exception(WorkerError("No result from worker"))
            return
        else:
            outcome = response.result
            self._latency.record((time.perf_counter() - pending.started) * 1000)
        pending.future.set_result(outcome)

    def _expire(self, request_id: str) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is None or pending.future.done():
            return
        logger.warning("Compile request %s timed out", request_id)
        pending.future.set_exception(CompileTimeoutError(request_id, self.settings.request_timeout_s))

    def _reject_all(self, error: Exception) -> None:
        pending, self._pending = self._pending, {}
        for entry in pending.values():
            entry.timer.cancel()
            if not entry.future.done():
                entry.future.set_exception(error)
