from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from restload.service import ReadinessService
from restload.version import RESTLOAD_VERSION

from . import api
from .deps import default_service

API_PREFIX = "/api/auto-load"


def create_app(service: ReadinessService | None = None, *, autostart: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Startup: kick off the first load cycle without blocking requests
        if autostart:
            app.state.service.start()
        yield
        # Shutdown: drop an unfinished load cycle
        await app.state.service.stop()

    app = FastAPI(
        title="Restload",
        description="Auto-load readiness and cache service",
        version=RESTLOAD_VERSION,
        lifespan=lifespan,
    )
    app.state.service = service or default_service()
    app.include_router(api.router, prefix=API_PREFIX)
    return app
