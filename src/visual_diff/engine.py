"""Visual diff engine: the public entry points of the package.

:class:`DiffEngine` wires the pieces together::

    decode -> normalize -> preprocess -> (pixel diff || SSIM) -> regions
           -> metrics / status -> visualization

and converts every failure into a typed :class:`CompareResponse` so that
callers never see an exception from :meth:`DiffEngine.compare`.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Sequence

import numpy as np

from visual_diff.config import Settings
from visual_diff.errors import ComparisonFailed, DimensionMismatch, VisualDiffError
from visual_diff.metrics.phash import calculate_hamming_distance, calculate_perceptual_hash
from visual_diff.metrics.similarity import calculate_similarity_score
from visual_diff.models.enums import DiffStatus, ErrorCode
from visual_diff.models.region import BoundingBox, ComparisonOptions
from visual_diff.models.request import CompareRequest, CompareResponse, EncodedImage
from visual_diff.models.result import DiffMetrics, DiffResult
from visual_diff.monitoring import OPERATIONS, PerformanceMonitor
from visual_diff.pool.manager import ExecutionManager, get_execution_manager
from visual_diff.processing.preprocess import gaussian_blur, normalize_dimensions, to_grayscale
from visual_diff.raster.buffer import RasterImage
from visual_diff.raster.codec import decode_image, to_data_url
from visual_diff.regions.clustering import filter_excluded, find_connected_components
from visual_diff.regions.ignore import IgnoreRegionDetector
from visual_diff.regions.kinds import classify_regions
from visual_diff.regions.pixel_diff import color_delta_stats
from visual_diff.visualization.composer import render_comparison

logger = logging.getLogger(__name__)

_LARGE_IMAGE_PIXELS = 1_000_000
_HIGH_COMPLEXITY = 50.0


def determine_status(
    percent_changed: float,
    ssim_score: float,
    max_changed_percent: float,
    ssim_acceptable: float,
) -> DiffStatus:
    """``failed`` if both criteria fail, ``warning`` if one does, else ``passed``."""
    pixel_failed = percent_changed > max_changed_percent
    structure_failed = ssim_score < ssim_acceptable
    if pixel_failed and structure_failed:
        return DiffStatus.FAILED
    if pixel_failed or structure_failed:
        return DiffStatus.WARNING
    return DiffStatus.PASSED


class DiffEngine:
    """Compares screenshots and produces :class:`DiffResult` records.

    Parameters
    ----------
    settings:
        Engine configuration.  Defaults to :class:`Settings` from the
        environment.
    manager:
        Execution manager for the parallel parts.  Defaults to the
        process-wide instance.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        manager: ExecutionManager | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.manager = manager or get_execution_manager(self.settings)
        self.monitor = PerformanceMonitor()
        self._outcomes = {"succeeded": 0, "failed": 0}
        self._outcome_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Primary entry point
    # ------------------------------------------------------------------

    def compare(self, request: CompareRequest) -> CompareResponse:
        """Compare ``request.comparison`` against ``request.baseline``.

        Never raises: decode failures, dimension problems and any other
        error are returned as ``CompareResponse(success=False, ...)``.
        """
        start = time.perf_counter()
        try:
            diff = self._compare(request, start)
        except VisualDiffError as exc:
            self._record_outcome(False, start)
            logger.warning(
                "Comparison %s vs %s failed: %s (%s)",
                request.baseline.id,
                request.comparison.id,
                exc.message,
                exc.code.value,
            )
            return CompareResponse.fail(exc.code, exc.message)
        except Exception as exc:
            self._record_outcome(False, start)
            logger.exception(
                "Comparison %s vs %s failed unexpectedly",
                request.baseline.id,
                request.comparison.id,
            )
            return CompareResponse.fail(
                ErrorCode.COMPARISON_FAILED, str(exc) or type(exc).__name__
            )

        self._record_outcome(True, start)
        logger.info(
            "Comparison %s vs %s completed: status=%s changed=%.3f%% ssim=%.4f regions=%d time=%.1fms",
            diff.baseline_id,
            diff.comparison_id,
            diff.status.value,
            diff.metrics.percent_changed,
            diff.metrics.ssim_score,
            diff.metrics.region_count,
            diff.metrics.processing_time_ms,
        )
        return CompareResponse.ok(diff)

    def _compare(self, request: CompareRequest, start: float) -> DiffResult:
        options = request.options or ComparisonOptions(
            color_threshold=self.settings.default_color_threshold
        )
        threshold = (
            request.threshold if request.threshold is not None else options.color_threshold
        )

        # ---- 1. Decode ---------------------------------------------------
        with self.monitor.time("image_loading"):
            baseline = self._decode(request.baseline)
            comparison = self._decode(request.comparison)

        # ---- 2. Normalize dimensions ---------------------------------------
        if not baseline.same_shape(comparison) and not self.settings.normalize_dimensions:
            raise DimensionMismatch(baseline.size, comparison.size)
        with self.monitor.time("dimension_normalization"):
            baseline, comparison = normalize_dimensions(baseline, comparison)

        # ---- 3. Preprocess -------------------------------------------------
        with self.monitor.time("preprocessing"):
            processed_a = self.preprocess(baseline, options)
            processed_b = self.preprocess(comparison, options)

        # ---- 4. Pixel diff and SSIM, concurrently ----------------------------
        ssim_task = self.manager.submit_ssim(
            processed_a, processed_b, self.settings.ssim_window
        )
        with self.monitor.time("diff_calculation"):
            diffs = self.manager.run_chunked(processed_a, processed_b, threshold)
        with self.monitor.time("ssim_calculation"):
            ssim_score = ssim_task.result()

        # ---- 5. Regions ----------------------------------------------------
        with self.monitor.time("region_detection"):
            regions = find_connected_components(
                diffs,
                processed_a.width,
                processed_a.height,
                min_cluster_size=self.settings.min_cluster_size,
                proximity=self.settings.proximity_px,
                severity_tiers=self.settings.severity_tiers,
            )
            regions = classify_regions(regions, processed_a, processed_b)

        excluded: list[BoundingBox]
        if options.excluded_regions is not None:
            excluded = list(options.excluded_regions)
        elif self.settings.auto_detect_ignore_regions:
            with self.monitor.time("ignore_region_detection"):
                excluded = IgnoreRegionDetector(
                    threshold, self.settings.proximity_px
                ).detect_from_regions(regions, processed_a, processed_b)
        else:
            excluded = []
        regions = filter_excluded(regions, excluded)

        # ---- 6. Metrics and status ---------------------------------------------
        total = processed_a.pixel_count
        percent = len(diffs) / total * 100.0
        mean_delta, max_delta = color_delta_stats(diffs)
        perceptual_distance = calculate_hamming_distance(
            calculate_perceptual_hash(processed_a), calculate_perceptual_hash(processed_b)
        )
        status = determine_status(
            percent,
            ssim_score,
            self.settings.max_changed_percent,
            self.settings.ssim_acceptable,
        )

        # ---- 7. Visualization -------------------------------------------------
        diff_image_url: str | None = None
        if options.generate_diff_image:
            with self.monitor.time("diff_visualization"):
                diff_image_url = to_data_url(
                    render_comparison(baseline, comparison, regions, excluded)
                )

        metrics = DiffMetrics(
            total_pixels=total,
            changed_pixels=len(diffs),
            percent_changed=percent,
            mean_color_delta=mean_delta,
            max_color_delta=max_delta,
            region_count=len(regions),
            ssim_score=ssim_score,
            perceptual_distance=perceptual_distance,
            processing_time_ms=(time.perf_counter() - start) * 1000.0,
        )
        return DiffResult(
            baseline_id=request.baseline.id,
            comparison_id=request.comparison.id,
            status=status,
            threshold=threshold,
            metrics=metrics,
            regions=regions,
            ignored_regions=excluded,
            diff_image_url=diff_image_url,
        )

    def _decode(self, image: EncodedImage) -> RasterImage:
        return decode_image(image.data_url, max_pixels=self.settings.max_image_pixels)

    def preprocess(self, image: RasterImage, options: ComparisonOptions) -> RasterImage:
        """Apply the grayscale and anti-aliasing steps selected by *options*."""
        if options.ignore_color:
            image = to_grayscale(image)
        if options.ignore_antialiasing:
            image = gaussian_blur(image, self.settings.blur_radius)
        return image

    def _record_outcome(self, succeeded: bool, start: float) -> None:
        self.monitor.record("full_comparison", (time.perf_counter() - start) * 1000.0)
        with self._outcome_lock:
            self._outcomes["succeeded" if succeeded else "failed"] += 1

    # ------------------------------------------------------------------
    # Secondary entry points
    # ------------------------------------------------------------------

    def batch_compare(
        self,
        baseline: EncodedImage,
        comparisons: Sequence[EncodedImage],
        options: ComparisonOptions | None = None,
    ) -> list[CompareResponse]:
        """Compare each of *comparisons* against *baseline*, in order."""
        return [
            self.compare(CompareRequest(baseline=baseline, comparison=candidate, options=options))
            for candidate in comparisons
        ]

    def calculate_similarity_score(self, a: RasterImage, b: RasterImage) -> float:
        """Blended SSIM / pHash / pixel similarity in ``[0, 1]``.

        Raises:
            ComparisonFailed: If any metric cannot be computed.
        """
        try:
            return calculate_similarity_score(
                a, b, self.settings.similarity_weights, self.settings.ssim_window
            )
        except VisualDiffError:
            raise
        except Exception as exc:
            raise ComparisonFailed(f"Similarity calculation failed: {exc}") from exc

    def detect_ignore_regions(self, a: RasterImage, b: RasterImage) -> list[BoundingBox]:
        """Propose exclusion boxes for dynamic content in *a* vs *b*."""
        a, b = normalize_dimensions(a, b)
        detector = IgnoreRegionDetector(
            self.settings.default_color_threshold, self.settings.proximity_px
        )
        return detector.detect(a, b)

    def suggest_options(self, image: RasterImage) -> ComparisonOptions:
        """Pick comparison options suited to *image*.

        Large or busy images (high mean contrast between horizontally
        adjacent pixels) get a more tolerant colour threshold.
        """
        threshold = self.settings.default_color_threshold
        if image.pixel_count > _LARGE_IMAGE_PIXELS:
            threshold = max(threshold, 0.3)
        rgb = image.to_array()[..., :3].astype(np.int16)
        if image.width > 1:
            complexity = float(np.abs(np.diff(rgb, axis=1)).sum(axis=-1).mean())
            if complexity > _HIGH_COMPLEXITY:
                threshold = max(threshold, 0.3)
        return ComparisonOptions(color_threshold=threshold, ignore_antialiasing=True)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_worker_status(self) -> dict[str, Any]:
        return self.manager.status()

    def get_performance_metrics(self) -> dict[str, Any]:
        """Timing statistics for completed comparisons."""
        with self._outcome_lock:
            succeeded = self._outcomes["succeeded"]
            failed = self._outcomes["failed"]
        total = succeeded + failed
        full = self.monitor.stats("full_comparison")
        return {
            "average_comparison_time_ms": full["avg"],
            "total_comparisons": total,
            "success_rate": succeeded / total if total else 0.0,
            "detailed_stats": {op: self.monitor.stats(op) for op in OPERATIONS},
        }

    def reset_performance_metrics(self) -> None:
        self.monitor.reset()
        with self._outcome_lock:
            self._outcomes = {"succeeded": 0, "failed": 0}
