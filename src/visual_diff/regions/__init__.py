"""Pixel difference detection and region clustering."""

from visual_diff.regions.clustering import (
    classify_severity,
    cluster_points,
    filter_excluded,
    find_connected_components,
)
from visual_diff.regions.ignore import IgnoreRegionDetector
from visual_diff.regions.kinds import classify_regions
from visual_diff.regions.pixel_diff import (
    MAX_COLOR_DISTANCE,
    PixelDiff,
    color_delta_stats,
    diff_chunk,
    diff_pixels,
)

__all__ = [
    "IgnoreRegionDetector",
    "MAX_COLOR_DISTANCE",
    "PixelDiff",
    "classify_regions",
    "classify_severity",
    "cluster_points",
    "color_delta_stats",
    "diff_chunk",
    "diff_pixels",
    "filter_excluded",
    "find_connected_components",
]
