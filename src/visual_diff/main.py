"""FastAPI application entry point.

Creates the app with a lifespan that loads settings, configures logging,
and builds the diff engine together with its worker pool.  The engine is
stored in ``app.state`` and the pool is torn down on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from visual_diff.api.router import api_router
from visual_diff.config import Settings
from visual_diff.engine import DiffEngine
from visual_diff.pool.manager import get_execution_manager, shutdown_execution_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan -- set up and tear down shared resources.

    On startup:
        1. Load :class:`Settings` from the environment.
        2. Start the process-wide worker pool.
        3. Create the :class:`DiffEngine` and store it in ``app.state``.

    On shutdown:
        1. Terminate the worker pool.
    """
    settings = Settings()

    # Configure root logging level.
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting visual-diff-engine (log_level=%s)", settings.log_level)

    engine = DiffEngine(settings, get_execution_manager(settings))

    app.state.settings = settings
    app.state.engine = engine

    logger.info(
        "Application startup complete (%d diff workers)",
        engine.get_worker_status()["worker_count"],
    )

    try:
        yield
    finally:
        logger.info("Shutting down visual-diff-engine")
        shutdown_execution_manager()
        logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# Application instance
# ---------------------------------------------------------------------------

app = FastAPI(
    title="visual-diff-engine",
    description="Perceptual screenshot comparison for visual regression testing.",
    version="0.1.0",
    lifespan=lifespan,
)

# ---- Middleware ----------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings().cors_allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

# ---- Routes --------------------------------------------------------------

app.include_router(api_router)
