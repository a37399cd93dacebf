"""EncodedImage, CompareRequest, and the CompareResponse envelope."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from visual_diff.models.enums import ErrorCode
from visual_diff.models.region import ComparisonOptions
from visual_diff.models.result import DiffResult


class EncodedImage(BaseModel):
    """A transmissible image: a ``data:`` URL or bare base64 text."""

    id: str = Field(description="Caller-side identifier of the screenshot.")
    data_url: str = Field(description="Base64 image, optionally as a data URL.")
    name: str | None = Field(default=None)


class CompareRequest(BaseModel):
    """Input to :meth:`~visual_diff.engine.DiffEngine.compare`."""

    baseline: EncodedImage
    comparison: EncodedImage
    threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Overrides ``options.color_threshold`` when given.",
    )
    options: ComparisonOptions | None = None


class ErrorInfo(BaseModel):
    """Failure details returned instead of raising across the boundary."""

    code: ErrorCode
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class CompareResponse(BaseModel):
    """Either ``success=True`` with a diff, or ``success=False`` with an error."""

    success: bool
    diff: DiffResult | None = None
    diff_image_url: str | None = None
    error: ErrorInfo | None = None

    @classmethod
    def ok(cls, diff: DiffResult) -> CompareResponse:
        return cls(success=True, diff=diff, diff_image_url=diff.diff_image_url)

    @classmethod
    def fail(cls, code: ErrorCode, message: str) -> CompareResponse:
        return cls(success=False, error=ErrorInfo(code=code, message=message))
