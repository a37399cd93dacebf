"""Tests for the diff visualization composer."""

from __future__ import annotations

import numpy as np

from visual_diff.models.enums import Severity
from visual_diff.models.region import BoundingBox, Region
from visual_diff.raster.buffer import RasterImage
from visual_diff.visualization.composer import (
    MASK_DIFFERENCE,
    MASK_IGNORED,
    build_diff_mask,
    compose_side_by_side,
    highlight_differences,
    render_comparison,
)

WHITE = (255, 255, 255, 255)


class TestHighlightDifferences:
    """Tests for highlight_differences."""

    def setup_method(self) -> None:
        self.image = RasterImage.blank(10, 10, WHITE)
        self.region = Region(x=2, y=2, width=3, height=3, severity=Severity.LOW)

    def test_blends_inside_box_only(self) -> None:
        out = highlight_differences(self.image, [self.region], (255, 0, 0, 255))
        assert out.pixel(3, 3) == (255, 0, 0, 255)
        assert out.pixel(5, 5) == (255, 255, 255, 255)
        assert out.pixel(1, 1) == (255, 255, 255, 255)

    def test_partial_opacity(self) -> None:
        out = highlight_differences(self.image, [self.region], (0, 0, 0, 51))
        # 255 * (1 - 0.2) = 204
        assert out.pixel(2, 2) == (204, 204, 204, 255)

    def test_source_untouched(self) -> None:
        highlight_differences(self.image, [self.region], (0, 0, 0, 255))
        assert self.image.pixel(3, 3) == WHITE

    def test_box_clipped_to_image(self) -> None:
        box = BoundingBox(x=8, y=8, width=50, height=50)
        out = highlight_differences(self.image, [box], (0, 0, 0, 255))
        assert out.pixel(9, 9) == (0, 0, 0, 255)
        assert out.size == (10, 10)


class TestDiffMask:
    """Tests for build_diff_mask."""

    def test_mask_colours(self) -> None:
        ref = RasterImage.blank(10, 10, WHITE)
        region = Region(x=0, y=0, width=2, height=2, severity=Severity.LOW)
        ignored = BoundingBox(x=5, y=5, width=3, height=3, name="clock")
        mask = build_diff_mask(ref, [region], [ignored])
        assert mask.size == ref.size
        assert mask.pixel(1, 1) == (*MASK_DIFFERENCE, 255)
        assert mask.pixel(6, 6) == (*MASK_IGNORED, 255)
        assert mask.pixel(9, 0) == (0, 0, 0, 255)

    def test_empty_mask_is_black(self) -> None:
        mask = build_diff_mask(RasterImage.blank(4, 4, WHITE), [])
        assert not mask.to_array()[..., :3].any()


class TestSideBySide:
    """Tests for compose_side_by_side and render_comparison."""

    def test_three_panels(self) -> None:
        a = RasterImage.blank(4, 3, (10, 0, 0, 255))
        b = RasterImage.blank(4, 3, (0, 20, 0, 255))
        mask = RasterImage.blank(4, 3, (0, 0, 30, 255))
        out = compose_side_by_side(a, b, mask)
        assert out.size == (12, 3)
        assert out.pixel(0, 0) == (10, 0, 0, 255)
        assert out.pixel(4, 0) == (0, 20, 0, 255)
        assert out.pixel(11, 2) == (0, 0, 30, 255)

    def test_unequal_panels_are_padded(self) -> None:
        a = RasterImage.blank(2, 2, WHITE)
        b = RasterImage.blank(4, 4, WHITE)
        out = compose_side_by_side(a, b)
        assert out.size == (8, 4)
        assert out.pixel(3, 3) == (0, 0, 0, 0)
        assert out.pixel(7, 3) == WHITE

    def test_render_comparison(self) -> None:
        arr = np.full((8, 8), 255)
        base = RasterImage.from_array(arr)
        arr[2:4, 2:4] = 0
        changed = RasterImage.from_array(arr)
        region = Region(x=2, y=2, width=2, height=2, severity=Severity.LOW)
        out = render_comparison(base, changed, [region])
        assert out.size == (24, 8)
        left = out.pixel(2, 2)
        right = out.pixel(8 + 2, 2)
        assert left[0] == 255 and left[1] < 255
        assert right[1] > right[0]
        assert out.pixel(16 + 2, 2)[:3] == MASK_DIFFERENCE
        assert out.pixel(16 + 6, 6)[:3] == (0, 0, 0)
