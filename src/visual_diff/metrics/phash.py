"""Perceptual hashing and Hamming distance."""

from __future__ import annotations

import numpy as np

from visual_diff.errors import LengthMismatch
from visual_diff.processing.preprocess import resize, to_grayscale
from visual_diff.raster.buffer import RasterImage

HASH_SIZE: int = 32

# A perceptual hash is a string of '0' / '1' characters, one per pixel of
# the HASH_SIZE x HASH_SIZE thumbnail.
PerceptualHash = str


def calculate_perceptual_hash(image: RasterImage, size: int = HASH_SIZE) -> PerceptualHash:
    """Return a ``size * size`` bit hash of *image*.

    The image is downsampled to ``size x size``, converted to grayscale,
    and each pixel becomes ``'1'`` if it is brighter than the thumbnail's
    mean intensity, ``'0'`` otherwise.
    """
    thumb = to_grayscale(resize(image, size, size))
    gray = thumb.to_array()[..., 0].astype(np.float64).ravel()
    bits = gray > gray.mean()
    return "".join("1" if bit else "0" for bit in bits)


def calculate_hamming_distance(hash_a: PerceptualHash, hash_b: PerceptualHash) -> int:
    """Count the positions at which two equal-length hashes differ.

    Raises:
        LengthMismatch: If the hashes have different lengths.
    """
    if len(hash_a) != len(hash_b):
        raise LengthMismatch(len(hash_a), len(hash_b))
    return sum(1 for bit_a, bit_b in zip(hash_a, hash_b) if bit_a != bit_b)
