"""Diff visualization: highlighted copies, a difference mask, and a
side-by-side composite for human review.

Nothing here affects scoring.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from visual_diff.models.region import BoundingBox
from visual_diff.raster.buffer import RasterImage

Color = tuple[int, int, int]
RGBA = tuple[int, int, int, int]

BASELINE_HIGHLIGHT: RGBA = (255, 0, 0, 80)
COMPARISON_HIGHLIGHT: RGBA = (0, 255, 0, 80)
IGNORED_HIGHLIGHT: RGBA = (255, 255, 0, 40)

MASK_BACKGROUND: Color = (0, 0, 0)
MASK_DIFFERENCE: Color = (255, 255, 255)
MASK_IGNORED: Color = (255, 255, 0)


def _clip_box(box: BoundingBox, width: int, height: int) -> tuple[slice, slice] | None:
    x0, y0 = max(box.x, 0), max(box.y, 0)
    x1, y1 = min(box.right, width), min(box.bottom, height)
    if x0 >= x1 or y0 >= y1:
        return None
    return slice(y0, y1), slice(x0, x1)


def highlight_differences(
    image: RasterImage,
    regions: Sequence[BoundingBox],
    color: RGBA = BASELINE_HIGHLIGHT,
) -> RasterImage:
    """Alpha-blend *color* over every region's box on a copy of *image*.

    ``color[3]`` is the blend opacity (0-255).  Alpha channels of the
    image are left alone.
    """
    out = image.to_array().astype(np.float64)
    r, g, b, a = color
    alpha = a / 255.0
    overlay = np.array([r, g, b], dtype=np.float64)
    for region in regions:
        window = _clip_box(region, image.width, image.height)
        if window is None:
            continue
        rows, cols = window
        out[rows, cols, :3] = out[rows, cols, :3] * (1.0 - alpha) + overlay * alpha
    return RasterImage.from_array(np.floor(out + 0.5))


def build_diff_mask(
    reference: RasterImage,
    regions: Sequence[BoundingBox],
    excluded_regions: Sequence[BoundingBox] = (),
) -> RasterImage:
    """Opaque black canvas the size of *reference*.

    Difference regions are painted white; excluded regions are painted
    the marker colour on top so reviewers can see what was ignored.
    """
    mask = np.zeros((reference.height, reference.width, 4), dtype=np.uint8)
    mask[..., :3] = MASK_BACKGROUND
    mask[..., 3] = 255
    for boxes, color in ((regions, MASK_DIFFERENCE), (excluded_regions, MASK_IGNORED)):
        for box in boxes:
            window = _clip_box(box, reference.width, reference.height)
            if window is not None:
                mask[window[0], window[1], :3] = color
    return RasterImage.from_array(mask)


def compose_side_by_side(
    baseline: RasterImage,
    comparison: RasterImage,
    mask: RasterImage | None = None,
) -> RasterImage:
    """Place the images left to right in equal-width, transparent-padded panels."""
    panels = [baseline, comparison] + ([mask] if mask is not None else [])
    panel_width = max(p.width for p in panels)
    height = max(p.height for p in panels)
    canvas = np.zeros((height, panel_width * len(panels), 4), dtype=np.uint8)
    for i, panel in enumerate(panels):
        x0 = i * panel_width
        canvas[: panel.height, x0 : x0 + panel.width] = panel.to_array()
    return RasterImage.from_array(canvas)


def render_comparison(
    baseline: RasterImage,
    comparison: RasterImage,
    regions: Sequence[BoundingBox],
    ignored: Sequence[BoundingBox] = (),
) -> RasterImage:
    """Highlight both images, build the mask, and join all three."""
    left = highlight_differences(
        highlight_differences(baseline, regions, BASELINE_HIGHLIGHT), ignored, IGNORED_HIGHLIGHT
    )
    right = highlight_differences(
        highlight_differences(comparison, regions, COMPARISON_HIGHLIGHT), ignored, IGNORED_HIGHLIGHT
    )
    return compose_side_by_side(left, right, build_diff_mask(baseline, regions, ignored))
