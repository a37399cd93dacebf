"""Data model for the diff engine."""

from visual_diff.models.enums import DiffStatus, ErrorCode, RegionKind, Severity
from visual_diff.models.region import BoundingBox, ComparisonOptions, Region
from visual_diff.models.request import (
    CompareRequest,
    CompareResponse,
    EncodedImage,
    ErrorInfo,
)
from visual_diff.models.result import DiffMetrics, DiffResult

__all__ = [
    "BoundingBox",
    "CompareRequest",
    "CompareResponse",
    "ComparisonOptions",
    "DiffMetrics",
    "DiffResult",
    "DiffStatus",
    "EncodedImage",
    "ErrorCode",
    "ErrorInfo",
    "Region",
    "RegionKind",
    "Severity",
]
