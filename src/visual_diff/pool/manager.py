"""Chunked, timeout-guarded dispatch of diff work to a task pool.

The :class:`ExecutionManager` partitions a pixel comparison into
contiguous byte ranges, hands each range (as its own copy) to the pool,
and concatenates the per-chunk results in partition order, so the output
never depends on completion order.

Any chunk whose worker is missing, fails, or exceeds its timeout is
recomputed on the calling thread.  A timed-out result is discarded, never
merged.  SSIM follows the same dispatch-and-fallback pattern with its own
timeout.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Any, Callable

from visual_diff.config import Settings
from visual_diff.errors import DimensionMismatch, WorkerTimeout
from visual_diff.metrics.ssim import DEFAULT_WINDOW, calculate_ssim
from visual_diff.pool.base import TaskPool
from visual_diff.pool.executors import InlineTaskPool, ThreadTaskPool
from visual_diff.raster.buffer import CHANNELS, RasterImage
from visual_diff.regions.pixel_diff import PixelDiff, diff_chunk

logger = logging.getLogger(__name__)


def default_pool_size(min_size: int = 2, max_size: int = 8) -> int:
    """Host concurrency clamped to ``[min_size, max_size]``."""
    return max(min_size, min(os.cpu_count() or 1, max_size))


@dataclass
class PoolCounters:
    """Running totals reported by :meth:`ExecutionManager.status`."""

    dispatched: int = 0
    completed: int = 0
    fallbacks: int = 0
    timeouts: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def bump(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)


class PendingTask:
    """A dispatched task plus everything needed to redo it inline."""

    def __init__(
        self,
        manager: ExecutionManager,
        future: Future | None,
        fn: Callable[..., Any],
        args: tuple[Any, ...],
        timeout: float,
        label: str,
    ) -> None:
        self._manager = manager
        self._future = future
        self._fn = fn
        self._args = args
        self._timeout = timeout
        self._label = label

    def result(self) -> Any:
        """Wait for the worker; recompute inline if it is late or broken."""
        if self._future is None:
            return self._fn(*self._args)
        try:
            value = self._wait()
        except WorkerTimeout as exc:
            self._manager.counters.bump("timeouts")
            logger.warning("%s; recomputing on the calling thread", exc)
        except Exception:
            logger.warning(
                "Worker failed on %s; recomputing on the calling thread",
                self._label,
                exc_info=True,
            )
        else:
            self._manager.counters.bump("completed")
            return value
        self._manager.counters.bump("fallbacks")
        return self._fn(*self._args)

    def _wait(self) -> Any:
        assert self._future is not None
        try:
            return self._future.result(timeout=self._timeout)
        except FutureTimeout as exc:
            self._future.cancel()
            raise WorkerTimeout(
                f"{self._label} exceeded {self._timeout:g}s timeout"
            ) from exc


class ExecutionManager:
    """Owns a task pool and runs chunked comparisons on it.

    Parameters
    ----------
    settings:
        Supplies pool bounds, minimum chunk size, and timeouts.
    pool:
        Use this pool instead of allocating one.  Pass
        :class:`~visual_diff.pool.executors.InlineTaskPool` for fully
        synchronous, deterministic execution.
    pool_size:
        Number of workers to allocate when *pool* is not given.  Defaults
        to host concurrency clamped to the settings bounds.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        pool: TaskPool | None = None,
        pool_size: int | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.counters = PoolCounters()
        if pool_size is None:
            pool_size = default_pool_size(
                self.settings.min_pool_size, self.settings.max_pool_size
            )
        self.max_workers = pool_size
        self._lock = threading.Lock()
        self._pool = pool if pool is not None else self._allocate(self.max_workers)

    @staticmethod
    def _allocate(size: int) -> TaskPool:
        if size == 0:
            return InlineTaskPool()
        try:
            pool = ThreadTaskPool(size)
        except (RuntimeError, ValueError, OSError):
            logger.warning(
                "Could not start %d workers, falling back to synchronous execution",
                size,
                exc_info=True,
            )
            return InlineTaskPool()
        logger.info("Started diff worker pool with %d workers", size)
        return pool

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def pool_size(self) -> int:
        return self._pool.size

    def status(self) -> dict[str, Any]:
        """Return pool and dispatch statistics for operational visibility."""
        return {
            "is_supported": self.pool_size > 0,
            "worker_count": self.pool_size,
            "max_workers": self.max_workers,
            "hardware_concurrency": os.cpu_count() or 1,
            "tasks_dispatched": self.counters.dispatched,
            "tasks_completed": self.counters.completed,
            "fallbacks": self.counters.fallbacks,
            "timeouts": self.counters.timeouts,
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(
        self,
        fn: Callable[..., Any],
        args: tuple[Any, ...],
        timeout: float,
        label: str,
    ) -> PendingTask:
        """Submit ``fn(*args)`` to the pool; never raises on pool failure.

        When there are no workers, or the pool refuses the task, the
        returned :class:`PendingTask` computes inline on :meth:`~PendingTask.result`.
        """
        with self._lock:
            pool = self._pool
        future: Future | None = None
        if pool.size > 0:
            try:
                future = pool.submit(fn, *args)
                self.counters.bump("dispatched")
            except RuntimeError:
                logger.warning("Worker pool unavailable for %s, running inline", label)
                self.counters.bump("fallbacks")
        return PendingTask(self, future, fn, args, timeout, label)

    def chunk_bounds(self, total_bytes: int) -> list[tuple[int, int]]:
        """Split ``[0, total_bytes)`` into pixel-aligned contiguous ranges.

        Chunk size is about ``total_bytes / (workers * 4)`` and never less
        than ``settings.min_chunk_bytes``.
        """
        workers = max(self.pool_size, 1)
        size = max(self.settings.min_chunk_bytes, total_bytes // (workers * 4))
        size = max(CHANNELS, size - size % CHANNELS)
        return [(start, min(start + size, total_bytes)) for start in range(0, total_bytes, size)]

    def run_chunked(
        self, a: RasterImage, b: RasterImage, threshold: float
    ) -> list[PixelDiff]:
        """Flag differing pixels of *a* and *b* using the pool.

        Raises:
            DimensionMismatch: If the images differ in size.
        """
        if not a.same_shape(b):
            raise DimensionMismatch(a.size, b.size)

        timeout = self.settings.chunk_timeout_seconds
        pending = [
            self.dispatch(
                diff_chunk,
                # bytes slicing copies, so no task shares a buffer.
                (a.byte_range(start, end), b.byte_range(start, end), start, a.width, threshold),
                timeout,
                f"pixel chunk [{start}:{end}]",
            )
            for start, end in self.chunk_bounds(len(a.pixels))
        ]
        logger.debug("Dispatched %d pixel chunks", len(pending))

        results: list[PixelDiff] = []
        for task in pending:
            results.extend(task.result())
        return results

    def submit_ssim(
        self, a: RasterImage, b: RasterImage, window: int = DEFAULT_WINDOW
    ) -> PendingTask:
        """Start an SSIM computation; call ``.result()`` to collect it."""
        if not a.same_shape(b):
            raise DimensionMismatch(a.size, b.size)
        return self.dispatch(
            calculate_ssim,
            (a, b, window),
            self.settings.ssim_timeout_seconds,
            "SSIM",
        )

    def run_ssim(self, a: RasterImage, b: RasterImage, window: int = DEFAULT_WINDOW) -> float:
        return self.submit_ssim(a, b, window).result()

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Terminate all workers.  Later calls run synchronously."""
        with self._lock:
            pool, self._pool = self._pool, InlineTaskPool()
        pool.shutdown()
        logger.info("Diff worker pool shut down")


_manager: ExecutionManager | None = None
_manager_lock = threading.Lock()


def get_execution_manager(settings: Settings | None = None) -> ExecutionManager:
    """Return the process-wide manager, creating it on first use."""
    global _manager
    with _manager_lock:
        if _manager is None:
            _manager = ExecutionManager(settings)
        return _manager


def shutdown_execution_manager() -> None:
    """Tear down the process-wide manager, if one was created."""
    global _manager
    with _manager_lock:
        manager, _manager = _manager, None
    if manager is not None:
        manager.shutdown()
