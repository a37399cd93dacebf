"""Group flagged pixels into difference regions.

Two flagged pixels belong to the same region when a chain of flagged
pixels connects them with every hop no longer than ``proximity`` pixels
(Euclidean).  Clusters smaller than ``min_cluster_size`` are dropped as
noise.

To keep this fast for large diffs, pixels are bucketed into square grid
cells whose diagonal does not exceed ``proximity``, so every pixel in a
cell is already within reach of every other.  The breadth-first
expansion then runs over cells, linking two cells when their closest
pair of pixels is within ``proximity``.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Iterable, Sequence

import numpy as np

from visual_diff.models.enums import RegionKind, Severity
from visual_diff.models.region import BoundingBox, Region
from visual_diff.regions.pixel_diff import PixelDiff

logger = logging.getLogger(__name__)

DEFAULT_PROXIMITY: int = 10
DEFAULT_MIN_CLUSTER_SIZE: int = 3
DEFAULT_SEVERITY_TIERS: tuple[int, int] = (100, 10)


def classify_severity(
    pixel_count: int, tiers: tuple[int, int] = DEFAULT_SEVERITY_TIERS
) -> Severity:
    """``high`` above ``tiers[0]`` pixels, ``medium`` above ``tiers[1]``, else ``low``."""
    high, medium = tiers
    if pixel_count > high:
        return Severity.HIGH
    if pixel_count > medium:
        return Severity.MEDIUM
    return Severity.LOW


def _cells_within(points_a: np.ndarray, points_b: np.ndarray, limit_sq: int) -> bool:
    delta = points_a[:, None, :] - points_b[None, :, :]
    return bool(((delta * delta).sum(axis=-1) <= limit_sq).any())


def cluster_points(
    xs: np.ndarray,
    ys: np.ndarray,
    proximity: int = DEFAULT_PROXIMITY,
) -> list[np.ndarray]:
    """Return clusters as arrays of indices into *xs* / *ys*.

    Clusters are ordered by their first member in row-major order.
    """
    if proximity < 1:
        raise ValueError(f"proximity must be >= 1, got {proximity}.")
    if len(xs) == 0:
        return []

    cell = int(proximity / math.sqrt(2)) + 1
    # Cells this many steps apart may still hold pixels within reach.
    reach = (proximity - 1) // cell + 1
    limit_sq = proximity * proximity

    points = np.stack([xs, ys], axis=1).astype(np.int64)
    order = np.lexsort((xs, ys))
    cells: dict[tuple[int, int], list[int]] = {}
    for i in order.tolist():
        key = (int(xs[i]) // cell, int(ys[i]) // cell)
        cells.setdefault(key, []).append(i)
    members = {key: np.asarray(idx, dtype=np.int64) for key, idx in cells.items()}

    clusters: list[np.ndarray] = []
    visited: set[tuple[int, int]] = set()
    # ``cells`` preserves first-seen order, which is row-major by pixel.
    for seed in cells:
        if seed in visited:
            continue
        visited.add(seed)
        queue = deque([seed])
        component: list[np.ndarray] = []
        while queue:
            cx, cy = queue.popleft()
            current = members[(cx, cy)]
            component.append(current)
            for dy in range(-reach, reach + 1):
                for dx in range(-reach, reach + 1):
                    key = (cx + dx, cy + dy)
                    if key in visited or key not in members:
                        continue
                    if _cells_within(points[current], points[members[key]], limit_sq):
                        visited.add(key)
                        queue.append(key)
        clusters.append(np.sort(np.concatenate(component)))
    return clusters


def find_connected_components(
    pixels: Sequence[PixelDiff],
    width: int,
    height: int,
    min_cluster_size: int = DEFAULT_MIN_CLUSTER_SIZE,
    proximity: int = DEFAULT_PROXIMITY,
    severity_tiers: tuple[int, int] = DEFAULT_SEVERITY_TIERS,
) -> list[Region]:
    """Cluster flagged pixels into bounded, severity-rated regions.

    Parameters
    ----------
    pixels:
        Flagged pixels, e.g. from :func:`~visual_diff.regions.pixel_diff.diff_pixels`.
    width, height:
        Image size; members outside it are ignored.
    min_cluster_size:
        Clusters with fewer members are discarded as noise.
    proximity:
        Maximum Euclidean hop between members of one cluster.
    severity_tiers:
        ``(high, medium)`` pixel-count thresholds, see :func:`classify_severity`.
    """
    if not pixels:
        return []

    xs = np.fromiter((p.x for p in pixels), dtype=np.int64, count=len(pixels))
    ys = np.fromiter((p.y for p in pixels), dtype=np.int64, count=len(pixels))
    inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
    xs, ys = xs[inside], ys[inside]

    regions: list[Region] = []
    for cluster in cluster_points(xs, ys, proximity):
        count = len(cluster)
        if count < min_cluster_size:
            continue
        cxs, cys = xs[cluster], ys[cluster]
        x0, x1 = int(cxs.min()), int(cxs.max())
        y0, y1 = int(cys.min()), int(cys.max())
        regions.append(
            Region(
                x=x0,
                y=y0,
                width=x1 - x0 + 1,
                height=y1 - y0 + 1,
                severity=classify_severity(count, severity_tiers),
                kind=RegionKind.MODIFICATION,
                pixel_count=count,
            )
        )

    logger.debug(
        "Clustered %d flagged pixels into %d regions", len(xs), len(regions)
    )
    return regions


def filter_excluded(
    regions: Iterable[Region], excluded: Sequence[BoundingBox]
) -> list[Region]:
    """Drop every region lying fully inside one of the *excluded* boxes."""
    if not excluded:
        return list(regions)
    return [r for r in regions if not any(zone.contains(r) for zone in excluded)]
