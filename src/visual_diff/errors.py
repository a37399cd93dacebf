"""Typed errors raised by the diff engine.

Every error carries a stable :class:`~visual_diff.models.enums.ErrorCode`
so that :meth:`~visual_diff.engine.DiffEngine.compare` can turn it into a
``CompareResponse`` failure envelope without inspecting messages.
"""

from __future__ import annotations

from visual_diff.models.enums import ErrorCode


class VisualDiffError(Exception):
    """Base class for all engine errors."""

    code: ErrorCode = ErrorCode.COMPARISON_FAILED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidImageData(VisualDiffError):
    """An input could not be decoded into a raster image."""

    code = ErrorCode.INVALID_IMAGE_DATA


class DimensionMismatch(VisualDiffError):
    """Two rasters that must share a shape do not."""

    code = ErrorCode.DIMENSION_MISMATCH

    def __init__(self, size_a: tuple[int, int], size_b: tuple[int, int]) -> None:
        super().__init__(
            f"Image dimensions don't match: "
            f"{size_a[0]}x{size_a[1]} vs {size_b[0]}x{size_b[1]}"
        )
        self.size_a = size_a
        self.size_b = size_b


class LengthMismatch(VisualDiffError):
    """Two perceptual hashes have different bit lengths."""

    code = ErrorCode.LENGTH_MISMATCH

    def __init__(self, length_a: int, length_b: int) -> None:
        super().__init__(
            f"Hashes must be the same length: {length_a} vs {length_b} bits"
        )


class WorkerTimeout(VisualDiffError):
    """A dispatched task did not finish in time.

    Only raised inside :class:`~visual_diff.pool.manager.ExecutionManager`,
    which always recovers by recomputing the task inline.
    """

    code = ErrorCode.WORKER_TIMEOUT


class ComparisonFailed(VisualDiffError):
    """Catch-all for failures during metric computation."""

    code = ErrorCode.COMPARISON_FAILED
