"""
FastAPI application factory.

``create_app()`` assembles the application with error handlers, the sync
router and the health endpoint. The module-level ``app`` instance allows
``uvicorn granola_sync.api.app:app``.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from granola_sync.api.middleware.error_handler import register_error_handlers
from granola_sync.api.routes import sync
from granola_sync.core.models import HealthResponse
from granola_sync.services.orchestrator import PeriodicSync, SyncOrchestrator
from granola_sync.services.storage import migrate_legacy_frontmatter


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown.

    Startup: configure logging, upgrade legacy metadata headers, then start
    the periodic sync loop when it is enabled.
    Shutdown: stop the loop and close the Granola HTTP client.
    """
    orchestrator: SyncOrchestrator = app.state.orchestrator
    logging.basicConfig(
        level=orchestrator.settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await asyncio.to_thread(migrate_legacy_frontmatter, orchestrator.store)

    periodic: PeriodicSync | None = None
    if orchestrator.settings.is_sync_enabled and orchestrator.settings.sync_interval > 0:
        periodic = PeriodicSync(orchestrator)
        periodic.start()
    app.state.periodic_sync = periodic

    yield

    if periodic is not None:
        await periodic.stop()
    await orchestrator.aclose()


def create_app(orchestrator: SyncOrchestrator | None = None) -> FastAPI:
    """Build and return a fully configured FastAPI application.

    Args:
        orchestrator: Orchestrator to serve; a default one built from
            ``get_settings()`` is used when omitted.

    Returns:
        FastAPI: The configured application, ready for ``uvicorn``.
    """

    app = FastAPI(
        title="granola-sync",
        description="Sync Granola meeting notes and transcripts into a markdown vault.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator or SyncOrchestrator()

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(sync.router, prefix="/api/v1")

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = app.state.orchestrator.settings
    uvicorn.run(app, host=settings.app_host, port=settings.app_port)
