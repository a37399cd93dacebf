"""Classify a region as an addition, a removal, or a modification."""

from __future__ import annotations

import numpy as np

from visual_diff.models.enums import RegionKind
from visual_diff.models.region import Region
from visual_diff.processing.preprocess import luminance
from visual_diff.raster.buffer import RasterImage

# Luminance standard deviation below which an area counts as empty.
FLAT_STDDEV: float = 4.0


def classify_kind(
    region: Region,
    gray_a: np.ndarray,
    gray_b: np.ndarray,
    flat_stddev: float = FLAT_STDDEV,
) -> RegionKind:
    window = np.s_[region.y:region.bottom, region.x:region.right]
    flat_a = float(gray_a[window].std()) < flat_stddev
    flat_b = float(gray_b[window].std()) < flat_stddev
    if flat_a and not flat_b:
        return RegionKind.ADDITION
    if flat_b and not flat_a:
        return RegionKind.REMOVAL
    return RegionKind.MODIFICATION


def classify_regions(
    regions: list[Region], baseline: RasterImage, comparison: RasterImage
) -> list[Region]:
    """Return copies of *regions* with ``kind`` set from the image content.

    Content appearing on a flat background is an addition, content
    disappearing into one is a removal; anything else is a modification.
    """
    if not regions:
        return []
    gray_a = luminance(baseline)
    gray_b = luminance(comparison)
    return [
        region.model_copy(update={"kind": classify_kind(region, gray_a, gray_b)})
        for region in regions
    ]
