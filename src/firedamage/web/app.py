"""FastAPI application for the fire damage assessment service.

Run with ``uvicorn firedamage.web.app:create_app --factory --port 4000``.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from firedamage.assessment.pipeline import AssessmentPipeline, create_pipeline
from firedamage.core.config import Settings
from firedamage.core.log_setup import configure_logging
from firedamage.core.types import HealthStatus
from firedamage.gis.health import check_arcgis_health
from firedamage.web.tools_router import router as tools_router


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    uptime_seconds: int
    cache_entries: int
    upstream: list[HealthStatus] | None = None


def create_app(
    settings: Settings | None = None,
    pipeline: AssessmentPipeline | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with fake transports.

    Args:
        settings: Application settings. Defaults to Settings().
        pipeline: Optional pre-built AssessmentPipeline.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()
    configure_logging(settings.log_level)

    if pipeline is None:
        pipeline = create_pipeline(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await pipeline.close()

    app = FastAPI(
        title="Fire Damage Assessment",
        description="CAL FIRE DINS fire damage assessments for Los Angeles addresses",
        version=settings.version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.started_at = time.monotonic()

    app.include_router(tools_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check(deep: bool = False) -> HealthResponse:
        """Liveness probe; ``deep=true`` also pings the geocoder."""
        upstream = None
        if deep:
            upstream = [await check_arcgis_health(pipeline.service)]
        return HealthResponse(
            status="ok",
            service=settings.service_name,
            version=settings.version,
            uptime_seconds=int(time.monotonic() - app.state.started_at),
            cache_entries=pipeline.cache.size(),
            upstream=upstream,
        )

    return app
