"""
Sync REST endpoints.

Manual trigger and status for the sync orchestrator stored on
``app.state.orchestrator``. No sync logic lives here.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from granola_sync.core.models import SyncReport, SyncStatusResponse
from granola_sync.services.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


def get_orchestrator(request: Request) -> SyncOrchestrator:
    return request.app.state.orchestrator


@router.post("", response_model=SyncReport)
async def trigger_sync(
    force: bool = Query(False, description="Overwrite files even when unchanged or newer locally"),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> SyncReport:
    """Run one sync cycle and return its report.

    Responds 409 when a cycle is already running.
    """
    logger.info("Manual sync requested (force=%s)", force)
    return await orchestrator.run_cycle(force=force)


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> SyncStatusResponse:
    return SyncStatusResponse(running=orchestrator.running, last_report=orchestrator.last_report)
