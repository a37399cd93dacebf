"""Perceptual screenshot comparison for visual regression testing."""

from visual_diff.engine import DiffEngine

__all__ = ["DiffEngine"]
