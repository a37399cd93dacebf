"""Windowed Structural Similarity (SSIM).

Both images are reduced to luminance and tiled with non-overlapping
``window x window`` blocks.  For each block the local means, variances and
covariance are combined with the standard SSIM formula::

    ((2*mu_a*mu_b + C1) * (2*cov + C2)) /
    ((mu_a**2 + mu_b**2 + C1) * (var_a + var_b + C2))

and the score is the mean over all blocks.  ``C1`` and ``C2`` are the
usual ``(0.01 * 255) ** 2`` and ``(0.03 * 255) ** 2`` for 8-bit data and
are not re-derived per image.

Partial blocks along the right and bottom edges are skipped.  An image
smaller than one block in either direction is scored as a single block
covering the whole image.
"""

from __future__ import annotations

import numpy as np

from visual_diff.errors import DimensionMismatch
from visual_diff.processing.preprocess import luminance
from visual_diff.raster.buffer import RasterImage

C1: float = 6.5025
C2: float = 58.5225

DEFAULT_WINDOW: int = 8


def ssim_from_luminance(gray_a: np.ndarray, gray_b: np.ndarray, window: int) -> float:
    """SSIM over two equal-shaped float luminance arrays."""
    if gray_a.shape != gray_b.shape:
        raise DimensionMismatch(gray_a.shape[::-1], gray_b.shape[::-1])
    if window <= 0:
        raise ValueError(f"SSIM window must be positive, got {window}.")

    height, width = gray_a.shape
    rows, cols = height // window, width // window
    if rows == 0 or cols == 0:
        blocks_a = gray_a.reshape(1, -1)
        blocks_b = gray_b.reshape(1, -1)
    else:
        h, w = rows * window, cols * window
        blocks_a = (
            gray_a[:h, :w].reshape(rows, window, cols, window)
            .swapaxes(1, 2)
            .reshape(rows * cols, window * window)
        )
        blocks_b = (
            gray_b[:h, :w].reshape(rows, window, cols, window)
            .swapaxes(1, 2)
            .reshape(rows * cols, window * window)
        )

    mean_a = blocks_a.mean(axis=1)
    mean_b = blocks_b.mean(axis=1)
    var_a = (blocks_a * blocks_a).mean(axis=1) - mean_a * mean_a
    var_b = (blocks_b * blocks_b).mean(axis=1) - mean_b * mean_b
    cov = (blocks_a * blocks_b).mean(axis=1) - mean_a * mean_b

    numerator = (2 * mean_a * mean_b + C1) * (2 * cov + C2)
    denominator = (mean_a * mean_a + mean_b * mean_b + C1) * (var_a + var_b + C2)
    return float(np.mean(numerator / denominator))


def calculate_ssim(a: RasterImage, b: RasterImage, window: int = DEFAULT_WINDOW) -> float:
    """Return the mean windowed SSIM of *a* and *b*.

    Raises:
        DimensionMismatch: If the images differ in width or height.
    """
    if not a.same_shape(b):
        raise DimensionMismatch(a.size, b.size)
    return ssim_from_luminance(luminance(a), luminance(b), window)
