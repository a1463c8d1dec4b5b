"""Infrastructure layer for the in-memory sync job history."""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Protocol

from sprint_pilot.domain import SyncJobRecord


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class JobRepository(Protocol):
    """Storage contract for sync job records."""

    def next_job_id(self) -> str: ...

    def start_job(self, job_id: str, list_id: str | None) -> None: ...

    def finish_job(
        self,
        job_id: str,
        *,
        status: str,
        list_id: str | None = None,
        ticket_count: int = 0,
        webhook_delivered: bool = False,
        message: str | None = None,
        error: str | None = None,
    ) -> None: ...

    def get_job(self, job_id: str) -> dict[str, object] | None: ...

    def list_jobs(self, limit: int = 50) -> list[dict[str, object]]: ...

    def reset(self) -> None: ...


class InMemoryJobRepository:
    """Process-local job history. Lost on restart."""

    def __init__(self) -> None:
        self._jobs: list[SyncJobRecord] = []
        self._job_counter = 0

    def _find(self, job_id: str) -> SyncJobRecord | None:
        for job in self._jobs:
            if job.job_id == job_id:
                return job
        return None

    def next_job_id(self) -> str:
        self._job_counter += 1
        return f"job-{self._job_counter:05d}"

    def start_job(self, job_id: str, list_id: str | None) -> None:
        self._jobs.append(SyncJobRecord(job_id=job_id, timestamp=_now(), list_id=list_id))

    def finish_job(
        self,
        job_id: str,
        *,
        status: str,
        list_id: str | None = None,
        ticket_count: int = 0,
        webhook_delivered: bool = False,
        message: str | None = None,
        error: str | None = None,
    ) -> None:
        job = self._find(job_id)
        if job is None:
            return
        job.status = status
        if list_id:
            job.list_id = list_id
        job.ticket_count = ticket_count
        job.webhook_delivered = webhook_delivered
        job.message = message
        job.error = error
        job.finished_at = _now()

    def get_job(self, job_id: str) -> dict[str, object] | None:
        job = self._find(job_id)
        return asdict(job) if job else None

    def list_jobs(self, limit: int = 50) -> list[dict[str, object]]:
        recent = self._jobs[-limit:] if limit > 0 else []
        return [asdict(job) for job in reversed(recent)]

    def reset(self) -> None:
        self._jobs.clear()
        self._job_counter = 0
