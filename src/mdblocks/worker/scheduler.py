"""Coalescing task queue keyed by operation kind"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from mdblocks.errors import CompileSupersededError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class CoalescingScheduler:
    """Delay tasks per key; scheduling a key again cancels the one still waiting.

    A superseded task never runs and its caller gets CompileSupersededError.
    Must be used from a single event loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._pending: dict[str, tuple[asyncio.TimerHandle, asyncio.Future]] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, key: str, delay_s: float, task: Callable[[], Awaitable[T]]) -> "asyncio.Future[T]":
        """Run task after delay_s unless key is scheduled again first."""
        loop = self._get_loop()
        self.cancel(key, CompileSupersededError(f"{key} request superseded"))

        future: asyncio.Future = loop.create_future()

        def fire() -> None:
            self._pending.pop(key, None)
            if future.done():
                return
            try:
                runner = asyncio.ensure_future(task())
            except Exception as e:
                future.set_exception(e)
                return
            runner.add_done_callback(lambda r: _relay(r, future))

        handle = loop.call_later(max(delay_s, 0.0), fire)
        self._pending[key] = (handle, future)
        return future

    def cancel(self, key: str, error: Optional[BaseException] = None) -> bool:
        """Cancel the waiting task for key; returns False when nothing was waiting."""
        entry = self._pending.pop(key, None)
        if entry is None:
            return False
        handle, future = entry
        handle.cancel()
        if not future.done():
            if error is None:
                future.cancel()
            else:
                future.set_exception(error)
        logger.debug("Cancelled pending %s task", key)
        return True

    def cancel_all(self, error: Optional[BaseException] = None) -> None:
        for key in list(self._pending):
            self.cancel(key, error)

    def pending_keys(self) -> list[str]:
        return list(self._pending)


def _relay(source: asyncio.Future, target: asyncio.Future) -> None:
    """Copy the outcome of source onto target."""
    if target.done():
        return
    if source.cancelled():
        target.cancel()
    elif source.exception() is not None:
        target.set_exception(source.exception())
    else:
        target.set_result(source.result())
