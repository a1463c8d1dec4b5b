from __future__ import annotations

from fastapi import APIRouter, HTTPException

from sprint_pilot.application import get_sync_service

router = APIRouter(tags=["jobs"])


@router.get("/jobs")
async def list_jobs() -> dict:
    service = get_sync_service()
    return {"jobs": service.list_jobs(50)}


@router.get("/jobs/{job_id}")
async def get_job(job_id: str) -> dict:
    service = get_sync_service()
    job = service.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("/test-webhook")
async def send_test_webhook(payload: dict) -> dict:
    webhook_url = payload.get("webhookUrl")
    if not webhook_url:
        raise HTTPException(status_code=400, detail="Missing webhookUrl in body")
    service = get_sync_service()
    success, message = await service.test_webhook(str(webhook_url))
    return {"success": success, "message": message}
