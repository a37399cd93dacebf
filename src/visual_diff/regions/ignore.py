"""Heuristic detection of areas that should be ignored.

Screenshots of live pages contain content that changes between captures
without being a regression: rotating ads, autoplaying media, carousels.
:class:`IgnoreRegionDetector` looks at the clustered differences between
two captures and proposes exclusion boxes for:

* **Ad slots** -- a changed area whose bounding box matches one of the
  standard IAB ad sizes (within a relative tolerance).
* **Live media** -- a changed area in which nearly every pixel changed
  and both captures are strongly textured, as with video frames or
  animated canvases.

The proposals are plain :class:`~visual_diff.models.region.BoundingBox`
instances carrying a ``name`` and ``reason``.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from visual_diff.models.region import BoundingBox, Region
from visual_diff.processing.preprocess import luminance
from visual_diff.raster.buffer import RasterImage
from visual_diff.regions.clustering import find_connected_components
from visual_diff.regions.pixel_diff import diff_pixels

logger = logging.getLogger(__name__)

# (name, width, height)
AD_SLOT_SIZES: tuple[tuple[str, int, int], ...] = (
    ("medium-rectangle", 300, 250),
    ("leaderboard", 728, 90),
    ("mobile-banner", 320, 50),
    ("wide-skyscraper", 160, 600),
)

_AD_SIZE_TOLERANCE = 0.10
_MEDIA_MIN_AREA = 64 * 64
_MEDIA_MIN_DENSITY = 0.9
_MEDIA_MIN_TEXTURE = 40.0


def _matches_ad_slot(region: BoundingBox) -> str | None:
    for name, width, height in AD_SLOT_SIZES:
        if (
            abs(region.width - width) <= width * _AD_SIZE_TOLERANCE
            and abs(region.height - height) <= height * _AD_SIZE_TOLERANCE
        ):
            return name
    return None


class IgnoreRegionDetector:
    """Proposes exclusion boxes for dynamic content."""

    def __init__(self, threshold: float = 0.2, proximity: int = 10) -> None:
        self.threshold = threshold
        self.proximity = proximity

    def detect(self, baseline: RasterImage, comparison: RasterImage) -> list[BoundingBox]:
        """Diff *baseline* against *comparison* and classify the changed areas."""
        diffs = diff_pixels(baseline, comparison, self.threshold)
        regions = find_connected_components(
            diffs,
            baseline.width,
            baseline.height,
            proximity=self.proximity,
        )
        return self.detect_from_regions(regions, baseline, comparison)

    def detect_from_regions(
        self,
        regions: Sequence[Region],
        baseline: RasterImage,
        comparison: RasterImage,
    ) -> list[BoundingBox]:
        """Classify already-detected *regions* without re-diffing the images."""
        if not regions:
            return []

        gray_a = luminance(baseline)
        gray_b = luminance(comparison)
        proposals: list[BoundingBox] = []

        for region in regions:
            box = BoundingBox(x=region.x, y=region.y, width=region.width, height=region.height)

            slot = _matches_ad_slot(region)
            if slot is not None:
                proposals.append(
                    box.model_copy(update={"name": slot, "reason": "advertisement slot"})
                )
                continue

            if region.area >= _MEDIA_MIN_AREA and region.pixel_count >= region.area * _MEDIA_MIN_DENSITY:
                window = np.s_[region.y:region.bottom, region.x:region.right]
                if (
                    float(gray_a[window].std()) >= _MEDIA_MIN_TEXTURE
                    and float(gray_b[window].std()) >= _MEDIA_MIN_TEXTURE
                ):
                    proposals.append(
                        box.model_copy(update={"name": "live-media", "reason": "dynamic content"})
                    )

        if proposals:
            logger.info("Detected %d dynamic regions to ignore", len(proposals))
        return proposals
