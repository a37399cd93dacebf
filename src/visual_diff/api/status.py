"""Operational introspection: worker pool state and timing statistics."""

from fastapi import APIRouter, Request

router = APIRouter(prefix="/v1", tags=["status"])


@router.get("/workers")
async def workers(request: Request) -> dict:
    """Pool size, host concurrency, and dispatch/fallback counters."""
    return request.app.state.engine.get_worker_status()


@router.get("/metrics")
async def metrics(request: Request) -> dict:
    """Average comparison time, success rate, and per-operation timings."""
    return request.app.state.engine.get_performance_metrics()
