"""Comparison endpoints: single and batch diffs, similarity, ignore regions."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from visual_diff.engine import DiffEngine
from visual_diff.errors import InvalidImageData, VisualDiffError
from visual_diff.models.region import BoundingBox, ComparisonOptions
from visual_diff.models.request import CompareRequest, CompareResponse, EncodedImage
from visual_diff.raster.buffer import RasterImage
from visual_diff.raster.codec import decode_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["diffs"])


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class BatchCompareRequest(BaseModel):
    """Request body for ``POST /v1/diffs/batch``."""

    baseline: EncodedImage = Field(description="Reference screenshot.")
    comparisons: list[EncodedImage] = Field(
        min_length=1,
        description="Candidates, each compared against the baseline in order.",
    )
    options: ComparisonOptions | None = Field(
        default=None,
        description="Options shared by every comparison in the batch.",
    )


class BatchCompareResponse(BaseModel):
    """Response body for ``POST /v1/diffs/batch``."""

    results: list[CompareResponse]


class ImagePairRequest(BaseModel):
    """Two images for the similarity and ignore-region endpoints."""

    a: EncodedImage
    b: EncodedImage


class SimilarityResponse(BaseModel):
    """Response body for ``POST /v1/similarity``."""

    a_id: str
    b_id: str
    score: float = Field(ge=0.0, le=1.0, description="Blended similarity; 1 means identical.")


class IgnoreRegionsResponse(BaseModel):
    """Response body for ``POST /v1/ignore-regions``."""

    regions: list[BoundingBox]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _engine(request: Request) -> DiffEngine:
    return request.app.state.engine


def _decode_pair(engine: DiffEngine, body: ImagePairRequest) -> tuple[RasterImage, RasterImage]:
    limit = engine.settings.max_image_pixels
    try:
        return (
            decode_image(body.a.data_url, max_pixels=limit),
            decode_image(body.b.data_url, max_pixels=limit),
        )
    except InvalidImageData as exc:
        raise HTTPException(status_code=422, detail=exc.message) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/diffs", response_model=CompareResponse)
async def compare(body: CompareRequest, request: Request) -> CompareResponse:
    """Compare two screenshots.

    Failures (undecodable images, dimension mismatch, metric errors) are
    reported in the body with ``success=false`` rather than as an HTTP
    error, so clients handle a single response shape.
    """
    return await asyncio.to_thread(_engine(request).compare, body)


@router.post("/diffs/batch", response_model=BatchCompareResponse)
async def batch_compare(body: BatchCompareRequest, request: Request) -> BatchCompareResponse:
    """Compare every candidate against the baseline, sequentially."""
    results = await asyncio.to_thread(
        _engine(request).batch_compare, body.baseline, body.comparisons, body.options
    )
    logger.info(
        "Batch against %s: %d/%d succeeded",
        body.baseline.id,
        sum(1 for r in results if r.success),
        len(results),
    )
    return BatchCompareResponse(results=results)


@router.post("/similarity", response_model=SimilarityResponse)
async def similarity(body: ImagePairRequest, request: Request) -> SimilarityResponse:
    """Return the blended similarity score of two images."""
    engine = _engine(request)
    a, b = _decode_pair(engine, body)
    try:
        score = await asyncio.to_thread(engine.calculate_similarity_score, a, b)
    except VisualDiffError as exc:
        logger.warning("Similarity of %s vs %s failed: %s", body.a.id, body.b.id, exc.message)
        raise HTTPException(status_code=422, detail=exc.message) from exc
    return SimilarityResponse(a_id=body.a.id, b_id=body.b.id, score=score)


@router.post("/ignore-regions", response_model=IgnoreRegionsResponse)
async def ignore_regions(body: ImagePairRequest, request: Request) -> IgnoreRegionsResponse:
    """Propose exclusion boxes for dynamic content between two images."""
    engine = _engine(request)
    a, b = _decode_pair(engine, body)
    regions = await asyncio.to_thread(engine.detect_ignore_regions, a, b)
    return IgnoreRegionsResponse(regions=regions)
