"""Preprocessing pipeline: grayscale, blur, and dimension normalization."""

from visual_diff.processing.preprocess import (
    gaussian_blur,
    luminance,
    normalize_dimensions,
    resize,
    to_grayscale,
)

__all__ = [
    "gaussian_blur",
    "luminance",
    "normalize_dimensions",
    "resize",
    "to_grayscale",
]
