"""Tests for the DiffEngine orchestration layer."""

from __future__ import annotations

import numpy as np
import pytest

from visual_diff.config import Settings
from visual_diff.engine import DiffEngine, determine_status
from visual_diff.models.enums import DiffStatus, ErrorCode, RegionKind, Severity
from visual_diff.models.region import BoundingBox, ComparisonOptions
from visual_diff.models.request import CompareRequest, EncodedImage
from visual_diff.pool.executors import InlineTaskPool
from visual_diff.pool.manager import ExecutionManager
from visual_diff.raster.buffer import RasterImage
from visual_diff.raster.codec import decode_image, to_data_url

GRAY = (128, 128, 128, 255)
BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def encoded(image: RasterImage, image_id: str) -> EncodedImage:
    return EncodedImage(id=image_id, data_url=to_data_url(image))


def make_engine(**overrides: object) -> DiffEngine:
    settings = Settings(**overrides)
    return DiffEngine(settings, ExecutionManager(settings, pool=InlineTaskPool()))


def noise_image(width: int, height: int, seed: int) -> RasterImage:
    rng = np.random.default_rng(seed)
    return RasterImage.from_array(rng.integers(0, 256, size=(height, width, 4)))


# ======================================================================
# Status rule
# ======================================================================


class TestDetermineStatus:
    """Tests for determine_status."""

    @pytest.mark.parametrize(
        "percent, ssim, expected",
        [
            (0.0, 1.0, DiffStatus.PASSED),
            (0.2, 0.85, DiffStatus.PASSED),
            (0.5, 0.99, DiffStatus.WARNING),
            (0.0, 0.5, DiffStatus.WARNING),
            (10.0, 0.1, DiffStatus.FAILED),
        ],
    )
    def test_rule(self, percent: float, ssim: float, expected: DiffStatus) -> None:
        assert determine_status(percent, ssim, 0.2, 0.85) == expected


# ======================================================================
# compare
# ======================================================================


class TestCompare:
    """Tests for DiffEngine.compare."""

    def setup_method(self) -> None:
        self.engine = make_engine()

    def _compare(self, a: RasterImage, b: RasterImage, **kwargs: object):
        request = CompareRequest(baseline=encoded(a, "base"), comparison=encoded(b, "cand"), **kwargs)
        return self.engine.compare(request)

    @pytest.mark.parametrize(
        "image",
        [
            RasterImage.blank(50, 50, GRAY),
            noise_image(37, 23, seed=1),
            RasterImage.blank(1, 1, WHITE),
        ],
    )
    def test_identity(self, image: RasterImage) -> None:
        response = self._compare(image, image)
        assert response.success is True
        diff = response.diff
        assert diff.status == DiffStatus.PASSED
        assert diff.metrics.changed_pixels == 0
        assert diff.metrics.ssim_score == pytest.approx(1.0, abs=1e-6)
        assert diff.metrics.perceptual_distance == 0
        assert diff.regions == []
        assert diff.baseline_id == "base"
        assert diff.comparison_id == "cand"

    def test_uniform_gray(self) -> None:
        gray = RasterImage.blank(50, 50, GRAY)
        diff = self._compare(gray, gray).diff
        assert diff.metrics.total_pixels == 2500
        assert diff.metrics.region_count == 0
        assert diff.metrics.percent_changed == 0.0

    def test_black_vs_white(self) -> None:
        diff = self._compare(RasterImage.blank(20, 20, BLACK), RasterImage.blank(20, 20, WHITE)).diff
        assert diff.status == DiffStatus.FAILED
        assert diff.metrics.changed_pixels == 400
        assert diff.metrics.percent_changed == pytest.approx(100.0)
        assert diff.metrics.max_color_delta == pytest.approx(255.0)
        assert diff.metrics.mean_color_delta == pytest.approx(255.0)
        assert len(diff.regions) == 1
        region = diff.regions[0]
        assert (region.x, region.y, region.width, region.height) == (0, 0, 20, 20)
        assert region.severity == Severity.HIGH
        assert region.kind == RegionKind.MODIFICATION

    def test_black_vs_white_coarser_tiers(self) -> None:
        self.engine = make_engine(severity_tiers=(1000, 100))
        diff = self._compare(RasterImage.blank(20, 20, BLACK), RasterImage.blank(20, 20, WHITE)).diff
        assert diff.regions[0].severity == Severity.MEDIUM

    def test_excluded_region_removes_diff(self) -> None:
        arr = np.full((40, 40), 255)
        base = RasterImage.from_array(arr)
        arr[5:10, 5:10] = 0
        changed = RasterImage.from_array(arr)
        zone = BoundingBox(x=0, y=0, width=20, height=20, name="clock")

        unfiltered = self._compare(base, changed, options=ComparisonOptions(excluded_regions=[]))
        assert len(unfiltered.diff.regions) == 1

        filtered = self._compare(base, changed, options=ComparisonOptions(excluded_regions=[zone]))
        assert filtered.diff.regions == []
        assert filtered.diff.ignored_regions == [zone]
        # Changed pixels are still counted.
        assert filtered.diff.metrics.changed_pixels == unfiltered.diff.metrics.changed_pixels

    def test_threshold_monotonic(self) -> None:
        a = noise_image(32, 32, seed=2)
        b = noise_image(32, 32, seed=3)
        counts = [
            self._compare(a, b, threshold=t).diff.metrics.changed_pixels
            for t in (0.0, 0.1, 0.2, 0.4, 0.7, 1.0)
        ]
        assert counts == sorted(counts, reverse=True)

    def test_request_threshold_overrides_options(self) -> None:
        a = RasterImage.blank(8, 8, BLACK)
        b = RasterImage.blank(8, 8, WHITE)
        response = self._compare(a, b, threshold=1.0, options=ComparisonOptions(color_threshold=0.1))
        assert response.diff.threshold == 1.0
        assert response.diff.metrics.changed_pixels == 0

    def test_options_threshold_used_without_override(self) -> None:
        response = self._compare(
            RasterImage.blank(8, 8, BLACK),
            RasterImage.blank(8, 8, WHITE),
            options=ComparisonOptions(color_threshold=0.35),
        )
        assert response.diff.threshold == 0.35

    def test_isolated_pixel_is_noise(self) -> None:
        arr = np.zeros((20, 20))
        base = RasterImage.from_array(arr)
        arr[10, 10] = 255
        changed = RasterImage.from_array(arr)
        diff = self._compare(
            base, changed, options=ComparisonOptions(ignore_antialiasing=False)
        ).diff
        assert diff.metrics.changed_pixels == 1
        assert diff.regions == []

    def test_ignore_color_compares_luminance(self) -> None:
        # Same luminance (~150), different hue.
        a = RasterImage.blank(8, 8, (0, 255, 0, 255))
        b = RasterImage.blank(8, 8, (150, 150, 150, 255))
        colored = self._compare(a, b, options=ComparisonOptions(ignore_color=False))
        gray = self._compare(a, b, options=ComparisonOptions(ignore_color=True))
        assert colored.diff.metrics.changed_pixels == 64
        assert gray.diff.metrics.changed_pixels == 0

    def test_diff_image(self) -> None:
        response = self._compare(RasterImage.blank(10, 6, BLACK), RasterImage.blank(10, 6, WHITE))
        assert response.diff_image_url == response.diff.diff_image_url
        rendered = decode_image(response.diff_image_url)
        assert rendered.size == (30, 6)

    def test_diff_image_disabled(self) -> None:
        response = self._compare(
            RasterImage.blank(4, 4),
            RasterImage.blank(4, 4),
            options=ComparisonOptions(generate_diff_image=False),
        )
        assert response.success
        assert response.diff_image_url is None

    def test_different_sizes_are_normalized(self) -> None:
        response = self._compare(RasterImage.blank(10, 10, GRAY), RasterImage.blank(20, 15, GRAY))
        assert response.success
        assert response.diff.metrics.total_pixels == 300

    def test_strict_dimensions(self) -> None:
        self.engine = make_engine(normalize_dimensions=False)
        response = self._compare(RasterImage.blank(50, 50), RasterImage.blank(60, 60))
        assert response.success is False
        assert response.error.code == ErrorCode.DIMENSION_MISMATCH
        assert "50x50 vs 60x60" in response.error.message

    def test_invalid_image_data(self) -> None:
        request = CompareRequest(
            baseline=EncodedImage(id="a", data_url="data:image/png;base64,AAAA"),
            comparison=encoded(RasterImage.blank(4, 4), "b"),
        )
        response = self.engine.compare(request)
        assert response.success is False
        assert response.diff is None
        assert response.error.code == ErrorCode.INVALID_IMAGE_DATA
        assert response.error.timestamp is not None

    def test_unexpected_error_is_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def explode(*args: object, **kwargs: object) -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr("visual_diff.engine.find_connected_components", explode)
        response = self._compare(RasterImage.blank(4, 4, BLACK), RasterImage.blank(4, 4, WHITE))
        assert response.success is False
        assert response.error.code == ErrorCode.COMPARISON_FAILED
        assert response.error.message == "boom"

    def test_new_panel_reported_by_default(self) -> None:
        # A new 300x250 panel matches an ad-slot size but is a real change.
        arr = np.full((300, 400, 4), 255)
        base = RasterImage.from_array(arr)
        arr[20:270, 50:350, :3] = (200, 0, 0)
        changed = RasterImage.from_array(arr)

        diff = self._compare(base, changed).diff
        assert diff.ignored_regions == []
        assert len(diff.regions) == 1
        region = diff.regions[0]
        assert (region.x, region.y, region.width, region.height) == (50, 20, 300, 250)
        assert region.severity == Severity.HIGH

    def test_replaced_photo_reported_by_default(self) -> None:
        rng = np.random.default_rng(0)
        base = RasterImage.from_array(rng.integers(0, 256, size=(100, 100)))
        changed = RasterImage.from_array(rng.integers(0, 256, size=(100, 100)))
        options = ComparisonOptions(ignore_antialiasing=False, color_threshold=0.01)

        diff = self._compare(base, changed, options=options).diff
        assert diff.ignored_regions == []
        assert len(diff.regions) == 1
        assert diff.regions[0].area == 100 * 100

    def test_auto_ignore_live_media_when_enabled(self) -> None:
        self.engine = make_engine(auto_detect_ignore_regions=True)
        rng = np.random.default_rng(0)
        base = RasterImage.from_array(rng.integers(0, 256, size=(100, 100)))
        changed = RasterImage.from_array(rng.integers(0, 256, size=(100, 100)))
        options = ComparisonOptions(ignore_antialiasing=False, color_threshold=0.01)

        auto = self._compare(base, changed, options=options)
        assert auto.diff.regions == []
        assert [box.name for box in auto.diff.ignored_regions] == ["live-media"]

        # An explicit list, even an empty one, overrides detection.
        disabled = self._compare(
            base, changed, options=options.model_copy(update={"excluded_regions": []})
        )
        assert len(disabled.diff.regions) == 1
        assert disabled.diff.ignored_regions == []

    def test_auto_ignore_ad_slot_when_enabled(self) -> None:
        self.engine = make_engine(auto_detect_ignore_regions=True)
        arr = np.full((300, 400, 4), 255)
        base = RasterImage.from_array(arr)
        arr[20:270, 50:350, :3] = (200, 0, 0)
        changed = RasterImage.from_array(arr)

        diff = self._compare(base, changed).diff
        assert diff.regions == []
        assert [box.name for box in diff.ignored_regions] == ["medium-rectangle"]
        # Changed pixels are still counted.
        assert diff.metrics.changed_pixels == 300 * 250


# ======================================================================
# Secondary entry points
# ======================================================================


class TestSecondaryEntryPoints:
    """Tests for batch_compare, similarity, ignore detection and introspection."""

    def setup_method(self) -> None:
        self.engine = make_engine()

    def test_batch_compare_preserves_order(self) -> None:
        base = encoded(RasterImage.blank(8, 8, GRAY), "base")
        candidates = [
            encoded(RasterImage.blank(8, 8, GRAY), "same"),
            EncodedImage(id="broken", data_url="nope"),
            encoded(RasterImage.blank(8, 8, WHITE), "white"),
        ]
        results = self.engine.batch_compare(
            base, candidates, ComparisonOptions(generate_diff_image=False)
        )
        assert [r.success for r in results] == [True, False, True]
        assert results[0].diff.comparison_id == "same"
        assert results[0].diff.status == DiffStatus.PASSED
        assert results[1].error.code == ErrorCode.INVALID_IMAGE_DATA
        assert results[2].diff.comparison_id == "white"
        assert results[2].diff_image_url is None

    def test_similarity_score(self) -> None:
        img = noise_image(16, 16, seed=4)
        assert self.engine.calculate_similarity_score(img, img) == pytest.approx(1.0)

    def test_detect_ignore_regions_no_change(self) -> None:
        img = RasterImage.blank(20, 20, GRAY)
        assert self.engine.detect_ignore_regions(img, img) == []

    def test_suggest_options_simple_image(self) -> None:
        options = self.engine.suggest_options(RasterImage.blank(50, 50, GRAY))
        assert options.color_threshold == 0.2
        assert options.ignore_antialiasing is True

    def test_suggest_options_busy_image(self) -> None:
        yy, xx = np.indices((20, 20))
        busy = RasterImage.from_array(((xx + yy) % 2) * 255)
        assert self.engine.suggest_options(busy).color_threshold == 0.3

    def test_suggest_options_large_image(self) -> None:
        assert self.engine.suggest_options(RasterImage.blank(1001, 1000)).color_threshold == 0.3

    def test_worker_status(self) -> None:
        status = self.engine.get_worker_status()
        assert status["is_supported"] is False
        assert status["worker_count"] == 0
        assert status["hardware_concurrency"] >= 1

    def test_performance_metrics(self) -> None:
        gray = encoded(RasterImage.blank(8, 8, GRAY), "g")
        self.engine.compare(CompareRequest(baseline=gray, comparison=gray))
        self.engine.compare(
            CompareRequest(baseline=gray, comparison=EncodedImage(id="x", data_url="bad"))
        )
        metrics = self.engine.get_performance_metrics()
        assert metrics["total_comparisons"] == 2
        assert metrics["success_rate"] == 0.5
        assert metrics["average_comparison_time_ms"] > 0
        assert metrics["detailed_stats"]["image_loading"]["count"] == 2
        assert metrics["detailed_stats"]["diff_calculation"]["count"] == 1

        self.engine.reset_performance_metrics()
        metrics = self.engine.get_performance_metrics()
        assert metrics["total_comparisons"] == 0
        assert metrics["success_rate"] == 0.0
        assert metrics["detailed_stats"]["image_loading"]["count"] == 0
