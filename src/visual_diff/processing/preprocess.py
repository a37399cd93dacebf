"""Preprocessing applied before two rasters are compared.

All functions are pure: they return new :class:`RasterImage` instances
and never touch their inputs.
"""

from __future__ import annotations

import logging

import numpy as np
from PIL import Image

from visual_diff.errors import DimensionMismatch
from visual_diff.raster.buffer import RasterImage
from visual_diff.raster.codec import from_pil, to_pil

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights.
LUMA_WEIGHTS: tuple[float, float, float] = (0.299, 0.587, 0.114)


def luminance(image: RasterImage) -> np.ndarray:
    """Return unrounded luminance as a ``(height, width)`` float64 array."""
    rgb = image.to_array()[..., :3].astype(np.float64)
    r, g, b = LUMA_WEIGHTS
    return r * rgb[..., 0] + g * rgb[..., 1] + b * rgb[..., 2]


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def to_grayscale(image: RasterImage) -> RasterImage:
    """Replace R, G and B with rounded luminance; alpha is kept."""
    gray = np.clip(_round_half_up(luminance(image)), 0, 255).astype(np.uint8)
    out = image.to_array().copy()
    out[..., 0] = gray
    out[..., 1] = gray
    out[..., 2] = gray
    return RasterImage.from_array(out)


def gaussian_kernel(radius: int) -> np.ndarray:
    """Normalized 1-D Gaussian of length ``2 * radius + 1``.

    The kernel is truncated at two standard deviations.
    """
    sigma = max(radius / 2.0, 0.5)
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(offsets ** 2) / (2.0 * sigma ** 2))
    return kernel / kernel.sum()


def _convolve_axis(data: np.ndarray, kernel: np.ndarray, axis: int) -> np.ndarray:
    radius = len(kernel) // 2
    pad = [(0, 0)] * data.ndim
    pad[axis] = (radius, radius)
    # Edge pixels are replicated so borders do not darken.
    padded = np.pad(data, pad, mode="edge")
    length = data.shape[axis]
    out = np.zeros_like(data, dtype=np.float64)
    for i, weight in enumerate(kernel):
        out += weight * np.take(padded, np.arange(i, i + length), axis=axis)
    return out


def gaussian_blur(image: RasterImage, radius: int = 1) -> RasterImage:
    """Separable Gaussian blur over all four channels.

    ``radius == 0`` returns *image* unchanged.
    """
    if radius < 0:
        raise ValueError(f"Blur radius must be >= 0, got {radius}.")
    if radius == 0:
        return image
    kernel = gaussian_kernel(radius)
    data = image.to_array().astype(np.float64)
    blurred = _convolve_axis(_convolve_axis(data, kernel, axis=1), kernel, axis=0)
    return RasterImage.from_array(_round_half_up(blurred))


def resize(image: RasterImage, width: int, height: int) -> RasterImage:
    """Bilinear resize to *width* x *height*; a no-op when already that size."""
    if image.size == (width, height):
        return image
    return from_pil(to_pil(image).resize((width, height), Image.Resampling.BILINEAR))


def normalize_dimensions(
    a: RasterImage, b: RasterImage
) -> tuple[RasterImage, RasterImage]:
    """Resize both images to the larger of each dimension.

    Raises:
        DimensionMismatch: If the resized images still differ in shape.
    """
    width = max(a.width, b.width)
    height = max(a.height, b.height)
    if not a.same_shape(b):
        logger.debug(
            "Normalizing %dx%d and %dx%d to %dx%d",
            a.width, a.height, b.width, b.height, width, height,
        )
    a2 = resize(a, width, height)
    b2 = resize(b, width, height)
    if not a2.same_shape(b2):
        raise DimensionMismatch(a2.size, b2.size)
    return a2, b2
