"""Health and readiness checks."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Liveness check -- always returns OK if the process is running."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness check -- checks that the diff engine has been created.

    Returns HTTP 200 with ``{"status": "ready"}`` once the lifespan has
    built the engine, or HTTP 503 with ``{"status": "not_ready"}``
    otherwise.
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is not None:
        return JSONResponse(
            content={"status": "ready", "workers": engine.get_worker_status()["worker_count"]},
            status_code=200,
        )
    return JSONResponse(content={"status": "not_ready"}, status_code=503)
