"""Blended similarity score.

SSIM is sensitive to large structural shifts, the perceptual hash is
blind to small local changes, and raw pixel similarity over-reacts to
anti-aliasing.  The blend weighs all three; the default weights are
``0.5`` (SSIM), ``0.3`` (pHash) and ``0.2`` (pixels).
"""

from __future__ import annotations

import numpy as np

from visual_diff.errors import DimensionMismatch
from visual_diff.metrics.phash import calculate_hamming_distance, calculate_perceptual_hash
from visual_diff.metrics.ssim import DEFAULT_WINDOW, calculate_ssim
from visual_diff.processing.preprocess import normalize_dimensions
from visual_diff.raster.buffer import RasterImage

DEFAULT_WEIGHTS: tuple[float, float, float] = (0.5, 0.3, 0.2)


def pixel_similarity(a: RasterImage, b: RasterImage) -> float:
    """``1 - mean absolute RGB difference / 255``; 1.0 means identical."""
    if not a.same_shape(b):
        raise DimensionMismatch(a.size, b.size)
    rgb_a = a.to_array()[..., :3].astype(np.int16)
    rgb_b = b.to_array()[..., :3].astype(np.int16)
    total = float(np.abs(rgb_a - rgb_b).sum())
    return 1.0 - total / (rgb_a.size * 255.0)


def blend_scores(
    ssim_score: float,
    hamming_distance: int,
    hash_length: int,
    pixel_score: float,
    weights: tuple[float, float, float] = DEFAULT_WEIGHTS,
) -> float:
    """Combine the three signals and clamp the result to ``[0, 1]``."""
    w_ssim, w_hash, w_pixel = weights
    hash_score = 1.0 - hamming_distance / hash_length if hash_length else 1.0
    blended = w_ssim * ssim_score + w_hash * hash_score + w_pixel * pixel_score
    return max(0.0, min(1.0, blended))


def calculate_similarity_score(
    a: RasterImage,
    b: RasterImage,
    weights: tuple[float, float, float] = DEFAULT_WEIGHTS,
    window: int = DEFAULT_WINDOW,
) -> float:
    """Return a similarity in ``[0, 1]``; higher means more alike.

    Images of different sizes are first resized to common bounds.
    """
    a, b = normalize_dimensions(a, b)
    hash_a = calculate_perceptual_hash(a)
    hash_b = calculate_perceptual_hash(b)
    return blend_scores(
        calculate_ssim(a, b, window),
        calculate_hamming_distance(hash_a, hash_b),
        max(len(hash_a), len(hash_b)),
        pixel_similarity(a, b),
        weights,
    )
