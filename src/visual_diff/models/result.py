"""DiffMetrics and DiffResult models."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from visual_diff.models.enums import DiffStatus
from visual_diff.models.region import BoundingBox, Region


class DiffMetrics(BaseModel):
    """Numbers describing how much two images differ."""

    model_config = ConfigDict(frozen=True)

    total_pixels: int = Field(ge=0)
    changed_pixels: int = Field(ge=0)
    percent_changed: float = Field(ge=0.0, le=100.0)
    mean_color_delta: float = Field(
        ge=0.0,
        description="Mean normalized (0-255) colour distance over changed pixels.",
    )
    max_color_delta: float = Field(
        ge=0.0,
        description="Largest normalized (0-255) colour distance.",
    )
    region_count: int = Field(ge=0)
    ssim_score: float = Field(description="Mean windowed SSIM.")
    perceptual_distance: int = Field(
        default=0,
        ge=0,
        description="Hamming distance between the two perceptual hashes.",
    )
    processing_time_ms: float = Field(default=0.0, ge=0.0)


class DiffResult(BaseModel):
    """Immutable record produced once per comparison."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    baseline_id: str
    comparison_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    status: DiffStatus
    threshold: float
    metrics: DiffMetrics
    regions: list[Region] = Field(default_factory=list)
    ignored_regions: list[BoundingBox] = Field(
        default_factory=list,
        description="Exclusion zones that were applied, supplied or detected.",
    )
    diff_image_url: str | None = Field(
        default=None,
        description="PNG data URL of the side-by-side visualization.",
    )
