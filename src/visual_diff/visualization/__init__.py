"""Diff visualization composer."""

from visual_diff.visualization.composer import (
    build_diff_mask,
    compose_side_by_side,
    highlight_differences,
    render_comparison,
)

__all__ = [
    "build_diff_mask",
    "compose_side_by_side",
    "highlight_differences",
    "render_comparison",
]
