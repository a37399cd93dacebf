"""Per-pixel colour-distance thresholding.

The Euclidean RGB distance between two pixels ranges from 0 to
``sqrt(3 * 255**2)`` (about 441.67).  It is rescaled to ``0..255`` and a
pixel is flagged when the rescaled distance exceeds ``threshold * 255``.
Alpha is ignored.
"""

from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

from visual_diff.errors import DimensionMismatch
from visual_diff.raster.buffer import CHANNELS, RasterImage

MAX_COLOR_DISTANCE: float = math.sqrt(3 * 255 ** 2)


class PixelDiff(NamedTuple):
    """A flagged pixel and the colours it had in each image."""

    x: int
    y: int
    difference: float  # normalized 0..255
    color_a: tuple[int, int, int]
    color_b: tuple[int, int, int]


def normalized_distance(rgb_a: np.ndarray, rgb_b: np.ndarray) -> np.ndarray:
    """Euclidean distance of ``(..., 3)`` colour arrays rescaled to 0..255."""
    delta = rgb_a.astype(np.float64) - rgb_b.astype(np.float64)
    distance = np.sqrt((delta * delta).sum(axis=-1))
    return np.minimum(distance * (255.0 / MAX_COLOR_DISTANCE), 255.0)


def diff_chunk(
    chunk_a: bytes,
    chunk_b: bytes,
    start_byte: int,
    width: int,
    threshold: float,
) -> list[PixelDiff]:
    """Flag differing pixels in two aligned RGBA byte ranges.

    *start_byte* is the offset of the chunk inside the full buffer and is
    used to recover ``(x, y)`` coordinates.  The function only reads its
    own copies of the data, so it is safe to run on a worker thread.
    """
    if len(chunk_a) != len(chunk_b):
        raise DimensionMismatch((len(chunk_a) // CHANNELS, 1), (len(chunk_b) // CHANNELS, 1))
    if not chunk_a:
        return []

    px_a = np.frombuffer(chunk_a, dtype=np.uint8).reshape(-1, CHANNELS)[:, :3]
    px_b = np.frombuffer(chunk_b, dtype=np.uint8).reshape(-1, CHANNELS)[:, :3]
    normalized = normalized_distance(px_a, px_b)
    flagged = np.flatnonzero(normalized > threshold * 255.0)
    if flagged.size == 0:
        return []

    index = flagged + start_byte // CHANNELS
    xs = (index % width).tolist()
    ys = (index // width).tolist()
    diffs = normalized[flagged].tolist()
    colors_a = px_a[flagged].tolist()
    colors_b = px_b[flagged].tolist()
    return [
        PixelDiff(x, y, d, tuple(ca), tuple(cb))
        for x, y, d, ca, cb in zip(xs, ys, diffs, colors_a, colors_b)
    ]


def diff_pixels(a: RasterImage, b: RasterImage, threshold: float) -> list[PixelDiff]:
    """Return every pixel whose normalized colour distance exceeds the threshold.

    Results are in row-major order.

    Raises:
        DimensionMismatch: If the images differ in size.
    """
    if not a.same_shape(b):
        raise DimensionMismatch(a.size, b.size)
    return diff_chunk(a.pixels, b.pixels, 0, a.width, threshold)


def color_delta_stats(diffs: list[PixelDiff]) -> tuple[float, float]:
    """Return ``(mean, max)`` of the normalized difference of *diffs*."""
    if not diffs:
        return 0.0, 0.0
    values = np.fromiter((d.difference for d in diffs), dtype=np.float64, count=len(diffs))
    return float(values.mean()), float(values.max())
