"""Concrete task pools: a bounded thread pool and an inline fallback."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from visual_diff.pool.base import TaskPool

logger = logging.getLogger(__name__)


class ThreadTaskPool(TaskPool):
    """Runs tasks on a fixed set of worker threads.

    The numpy kernels used by the diff tasks release the GIL, so threads
    give real parallelism without pickling pixel buffers across process
    boundaries.
    """

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"Pool size must be positive, got {size}.")
        self._executor = ThreadPoolExecutor(
            max_workers=size, thread_name_prefix="visual-diff-worker"
        )
        self.size = size

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        return self._executor.submit(fn, *args)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True, cancel_futures=True)
        self.size = 0


class InlineTaskPool(TaskPool):
    """Runs each task immediately on the calling thread.

    Returns futures that are already resolved, so callers use the same
    code path whether or not real workers exist.
    """

    size = 0

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args))
        except Exception as exc:
            future.set_exception(exc)
        return future

    def shutdown(self) -> None:
        pass
