"""Similarity metrics: SSIM, perceptual hash, and the blended score."""

from visual_diff.metrics.phash import (
    HASH_SIZE,
    PerceptualHash,
    calculate_hamming_distance,
    calculate_perceptual_hash,
)
from visual_diff.metrics.similarity import (
    blend_scores,
    calculate_similarity_score,
    pixel_similarity,
)
from visual_diff.metrics.ssim import C1, C2, calculate_ssim, ssim_from_luminance

__all__ = [
    "C1",
    "C2",
    "HASH_SIZE",
    "PerceptualHash",
    "blend_scores",
    "calculate_hamming_distance",
    "calculate_perceptual_hash",
    "calculate_similarity_score",
    "calculate_ssim",
    "pixel_similarity",
    "ssim_from_luminance",
]
