from __future__ import annotations

from fastapi import APIRouter

from sprint_pilot.application import get_sync_service
from sprint_pilot.core.schema import SyncRequest, SyncResult

router = APIRouter(tags=["sync"])


@router.post("/sync", response_model=SyncResult)
async def trigger_sync(payload: SyncRequest) -> SyncResult:
    """Fetch, analyse and deliver the sprint for one ClickUp list."""
    service = get_sync_service()
    return await service.run_sync(payload)
