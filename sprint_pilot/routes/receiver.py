"""Reference webhook receiver.

Verifies the ``X-Sprint-Pilot-Signature`` header over the raw request body
before the JSON is parsed. Persisting the document is left to whoever mounts
a real receiver; this one only acknowledges it.
"""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from sprint_pilot.core.schema import DeliveryPayload
from sprint_pilot.core.signing import SIGNATURE_HEADER, verify_signature
from sprint_pilot.logging import get_logger

logger = get_logger("receiver")

router = APIRouter(tags=["receiver"])


@router.post("/receiver")
async def receive_sprint(request: Request) -> dict:
    body = await request.body()

    secret = getattr(request.app.state.settings, "receiver_secret", None)
    if secret:
        verify_signature(body, request.headers.get(SIGNATURE_HEADER), secret)

    try:
        payload = DeliveryPayload.model_validate_json(body)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid sprint payload: {exc.error_count()} error(s)") from exc
    if not payload.sprint_markdown:
        raise HTTPException(status_code=400, detail="Missing sprintMarkdown in payload")

    logger.info(
        "Received sprint for list %s with %d tickets (synced at %s)",
        payload.metadata.list_id,
        payload.metadata.ticket_count,
        payload.metadata.sync_timestamp,
    )
    return {"success": True, "ticketCount": payload.metadata.ticket_count}
