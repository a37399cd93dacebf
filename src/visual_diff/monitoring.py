"""Per-operation timing for the diff engine."""

from __future__ import annotations

import threading
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from typing import Iterator

OPERATIONS: tuple[str, ...] = (
    "image_loading",
    "dimension_normalization",
    "preprocessing",
    "diff_calculation",
    "ssim_calculation",
    "region_detection",
    "ignore_region_detection",
    "diff_visualization",
)


class PerformanceMonitor:
    """Collects wall-clock durations (milliseconds) keyed by operation name.

    Only the most recent *history* samples per operation are kept.
    """

    def __init__(self, history: int = 1000) -> None:
        self._timings: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=history))
        self._lock = threading.Lock()

    def record(self, operation: str, duration_ms: float) -> None:
        with self._lock:
            self._timings[operation].append(duration_ms)

    @contextmanager
    def time(self, operation: str) -> Iterator[None]:
        """Time the enclosed block, recording it even if it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(operation, (time.perf_counter() - start) * 1000.0)

    def stats(self, operation: str) -> dict[str, float]:
        with self._lock:
            times = list(self._timings.get(operation, ()))
        if not times:
            return {"avg": 0.0, "min": 0.0, "max": 0.0, "count": 0}
        return {
            "avg": sum(times) / len(times),
            "min": min(times),
            "max": max(times),
            "count": len(times),
        }

    def reset(self) -> None:
        with self._lock:
            self._timings.clear()
