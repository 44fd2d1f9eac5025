"""
Scheduling helpers for the two-stage octree pipeline.

Decoding runs on an executor; installation must run back on the thread that
owns the scene graph. ``DeferredCallQueue.post`` is safe to call from worker
threads and ``drain`` runs the queued calls on the caller's thread (a ROS
timer in the node, the test body in tests). ``asyncio`` users can pass
``loop.call_soon_threadsafe`` instead, it has the same signature.
"""

from __future__ import annotations

import logging
import queue
from concurrent.futures import Executor, Future
from typing import Any, Callable

_logger = logging.getLogger(__name__)


class DeferredCallQueue:
    """Thread-safe FIFO of zero-argument calls, drained on the owning thread."""

    def __init__(self) -> None:
        self._calls: "queue.SimpleQueue[Callable[[], Any]]" = queue.SimpleQueue()

    def post(self, fn: Callable[[], Any]) -> None:
        self._calls.put(fn)

    def drain(self) -> int:
        """Run every queued call; returns how many ran."""
        count = 0
        while True:
            try:
                fn = self._calls.get_nowait()
            except queue.Empty:
                return count
            count += 1
            try:
                fn()
            except Exception:
                _logger.exception("deferred call %r failed", fn)

    def __len__(self) -> int:
        return self._calls.qsize()


class InlineExecutor(Executor):
    """Executor that runs the task synchronously inside ``submit``."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        future.set_running_or_notify_cancel()
        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future
