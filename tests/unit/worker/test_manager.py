"""Unit tests for worker/manager.py"""

import asyncio
import re
import threading

import pytest

from mdblocks.config import Settings
from mdblocks.errors import CompileSupersededError, CompileTimeoutError, WorkerError
from mdblocks.worker.manager import CompilerExecutionManager
from mdblocks.worker.protocol import CompileRequest, CompileResponse


class RecordingWorker:
    """Echoes input in upper case and records every request it handles."""

    def __init__(self):
        self.requests: list[CompileRequest] = []

    def handle(self, request: CompileRequest) -> CompileResponse:
        self.requests.append(request)
        return CompileResponse(type="result", id=request.id, result=request.data.upper())


class BlockingWorker:
    def __init__(self):
        self.release = threading.Event()

    def handle(self, request: CompileRequest) -> CompileResponse:
        self.release.wait(5)
        return CompileResponse(type="result", id=request.id, result="late")


class CrashingWorker:
    def handle(self, request: CompileRequest) -> CompileResponse:
        raise RuntimeError("worker crashed")


class ErrorWorker:
    def handle(self, request: CompileRequest) -> CompileResponse:
        return CompileResponse(type="error", id=request.id, message="bad input")


def _settings(**kw) -> Settings:
    kw.setdefault("debounce_ms", 20)
    return Settings(**kw)


def test_debounce_coalesces_to_last_input():
    """Three submits inside one window dispatch once, with the last input."""
    worker = RecordingWorker()

    async def scenario():
        async with CompilerExecutionManager(_settings(), worker=worker) as manager:
            return await asyncio.gather(
                manager.md_to_html("one"),
                manager.md_to_html("two"),
                manager.md_to_html("three"),
                return_exceptions=True,
            )

    results = asyncio.run(scenario())
    assert [r.data for r in worker.requests] == ["three"]
    assert isinstance(results[0], CompileSupersededError)
    assert isinstance(results[1], CompileSupersededError)
    assert results[2] == "THREE"


def test_directions_debounce_independently():
    worker = RecordingWorker()

    async def scenario():
        async with CompilerExecutionManager(_settings(), worker=worker) as manager:
            return await asyncio.gather(manager.md_to_html("md"), manager.html_to_md("html"))

    assert asyncio.run(scenario()) == ["MD", "HTML"]
    assert sorted(r.type for r in worker.requests) == ["htmlToMd", "mdToHtml"]


def test_request_ids_are_unique():
    worker = RecordingWorker()

    async def scenario():
        async with CompilerExecutionManager(_settings(debounce_ms=0), worker=worker) as manager:
            await manager.md_to_html("a")
            await manager.md_to_html("b")

    asyncio.run(scenario())
    ids = [r.id for r in worker.requests]
    assert len(set(ids)) == 2
    assert all(re.fullmatch(r"req_\d+_\d+", i) for i in ids)


def test_timeout_rejects_request():
    worker = BlockingWorker()

    async def scenario():
        manager = CompilerExecutionManager(_settings(debounce_ms=0, request_timeout_s=0.05), worker=worker)
        try:
            with pytest.raises(CompileTimeoutError, match="conversion timed out"):
                await manager.md_to_html("slow")
            assert manager.pending_count() == 0
        finally:
            worker.release.set()
            manager.close()

    asyncio.run(scenario())


def test_worker_failure_rejects_all_pending():
    async def scenario():
        async with CompilerExecutionManager(_settings(debounce_ms=0), worker=CrashingWorker()) as manager:
            results = await asyncio.gather(
                manager.md_to_html("a"), manager.html_to_md("b"), return_exceptions=True,
            )
            assert manager.pending_count() == 0
            return results

    results = asyncio.run(scenario())
    assert all(isinstance(r, WorkerError) for r in results)


def test_error_response_rejects_request():
    async def scenario():
        async with CompilerExecutionManager(_settings(debounce_ms=0), worker=ErrorWorker()) as manager:
            await manager.md_to_html("x")

    with pytest.raises(WorkerError, match="bad input"):
        asyncio.run(scenario())


def test_metrics_and_targets_after_success():
    async def scenario():
        async with CompilerExecutionManager(_settings(debounce_ms=0), worker=RecordingWorker()) as manager:
            for text in ("a", "b", "c"):
                await manager.md_to_html(text)
            return manager.metrics(), manager.check_performance_targets()

    snapshot, targets = asyncio.run(scenario())
    assert snapshot.count == 3
    assert snapshot.p95 >= snapshot.p50 >= 0
    assert targets == {"p50Target": True, "p95Target": True}


def test_failed_requests_not_counted():
    async def scenario():
        async with CompilerExecutionManager(_settings(debounce_ms=0), worker=ErrorWorker()) as manager:
            with pytest.raises(WorkerError):
                await manager.md_to_html("x")
            return manager.metrics()

    assert asyncio.run(scenario()).count == 0


def test_refresh_metrics_from_real_worker():
    async def scenario():
        async with CompilerExecutionManager(_settings(debounce_ms=0)) as manager:
            html = await manager.md_to_html("```card\n{\"title\": \"t\"}\n```\n")
            md = await manager.html_to_md(html)
            return md, await manager.refresh_metrics()

    md, worker_metrics = asyncio.run(scenario())
    assert md == '```card\n{"title": "t"}\n```\n'
    assert worker_metrics.count == 2


def test_unknown_direction_rejected():
    async def scenario():
        async with CompilerExecutionManager(_settings(), worker=RecordingWorker()) as manager:
            await manager.submit("sideways", "x")

    with pytest.raises(ValueError, match="Unknown compile direction"):
        asyncio.run(scenario())


def test_close_rejects_waiting_and_new_calls():
    async def scenario():
        manager = CompilerExecutionManager(_settings(debounce_ms=1000), worker=RecordingWorker())
        waiting = asyncio.ensure_future(manager.md_to_html("never"))
        await asyncio.sleep(0)
        manager.close()
        with pytest.raises(WorkerError):
            await waiting
        with pytest.raises(WorkerError, match="closed"):
            await manager.md_to_html("after")

    asyncio.run(scenario())
