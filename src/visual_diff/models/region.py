"""BoundingBox, Region, and ComparisonOptions models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from visual_diff.models.enums import RegionKind, Severity


class BoundingBox(BaseModel):
    """An axis-aligned rectangle in pixel coordinates."""

    model_config = ConfigDict(frozen=True)

    x: int = Field(ge=0, description="Left edge (inclusive).")
    y: int = Field(ge=0, description="Top edge (inclusive).")
    width: int = Field(ge=0, description="Width in pixels.")
    height: int = Field(ge=0, description="Height in pixels.")
    name: str | None = Field(
        default=None,
        description="Optional label, e.g. 'clock' or 'ad-slot'.",
    )
    reason: str | None = Field(
        default=None,
        description="Why the area is ignored (e.g. 'dynamic timestamp').",
    )

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def contains(self, other: BoundingBox) -> bool:
        """Return ``True`` if *other* lies fully inside this box."""
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )


class Region(BoundingBox):
    """A cluster of differing pixels, fixed at detection time."""

    severity: Severity = Field(description="Severity derived from pixel_count.")
    kind: RegionKind = Field(
        default=RegionKind.MODIFICATION,
        description="Whether content was modified, added, or removed.",
    )
    pixel_count: int = Field(
        default=0,
        ge=0,
        description="Number of flagged pixels that formed this region.",
    )


class ComparisonOptions(BaseModel):
    """Per-request knobs for a comparison."""

    color_threshold: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Normalized colour distance above which a pixel counts as changed.",
    )
    ignore_antialiasing: bool = Field(
        default=True,
        description="Blur both images before thresholding to suppress edge noise.",
    )
    ignore_color: bool = Field(
        default=False,
        description="Compare luminance only.",
    )
    excluded_regions: list[BoundingBox] | None = Field(
        default=None,
        description=(
            "Areas whose differences are ignored. ``None`` means no exclusions, "
            "unless the engine is configured to detect dynamic areas itself."
        ),
    )
    generate_diff_image: bool = Field(
        default=True,
        description="Render the side-by-side diff image into the result.",
    )
