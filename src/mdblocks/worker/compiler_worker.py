"""Request handler run inside the compiler execution context"""

import logging
import time
from typing import Optional

from mdblocks.core.blocks.registry import BlockRegistry
from mdblocks.core.compile.html_to_md import html_to_md
from mdblocks.core.compile.md_to_html import md_to_html
from mdblocks.worker.metrics import LatencyTracker
from mdblocks.worker.protocol import CompileRequest, CompileResponse


logger = logging.getLogger(__name__)


class CompilerWorker:
    """Answers compile and metrics requests; tracks its own compile times."""

    def __init__(self, preset: str = "gfm-like", registry: Optional[BlockRegistry] = None, metrics_window: int = 1000):
        self.preset = preset
        self.registry = registry
        self.compile_times = LatencyTracker(metrics_window)

    def handle(self, request: CompileRequest) -> CompileResponse:
        if request.type == "getMetrics":
            return CompileResponse(type="metrics", id=request.id, metrics=self.compile_times.snapshot())

        started = time.perf_counter()
        if request.type == "mdToHtml":
            result = md_to_html(request.data, self.registry, self.preset)
        elif request.type == "htmlToMd":
            result = html_to_md(request.data)
        else:
            return CompileResponse(type="error", id=request.id, message=f"Unknown message type: {request.type}")

        elapsed_ms = (time.perf_counter() - started) * 1000
        self.compile_times.record(elapsed_ms)
        logger.debug("%s %s compiled in %.1fms", request.type, request.id, elapsed_ms)
        return CompileResponse(type="result", id=request.id, result=result)
