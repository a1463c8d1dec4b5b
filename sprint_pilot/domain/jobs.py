"""Domain entities for sync run bookkeeping."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SyncJobRecord:
    """One sync run as shown in the job history."""

    job_id: str
    timestamp: str
    list_id: str | None = None
    status: str = "running"
    ticket_count: int = 0
    webhook_delivered: bool = False
    message: str | None = None
    error: str | None = None
    finished_at: str | None = None
