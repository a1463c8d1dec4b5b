"""Application service for sync runs and their history."""
from __future__ import annotations

import asyncio
from typing import Protocol, Sequence

from sprint_pilot.config import Settings
from sprint_pilot.core.errors import SprintPilotError
from sprint_pilot.core.schema import SyncRequest, SyncResult
from sprint_pilot.infrastructure import (
    ChatCompletionsClient,
    ClickUpClient,
    InMemoryJobRepository,
    JobRepository,
    WebhookClient,
)
from sprint_pilot.workers.pipeline import SprintSyncPipeline

from .analysis import TicketAnalyzer


class SupportsAclose(Protocol):
    async def aclose(self) -> None: ...


class SyncService:
    """Runs the sync pipeline and records every run in the job history."""

    def __init__(
        self,
        pipeline: SprintSyncPipeline,
        repository: JobRepository,
        webhook: WebhookClient | None = None,
        *,
        clients: Sequence[SupportsAclose] = (),
    ) -> None:
        self._pipeline = pipeline
        self._repository = repository
        self._webhook = webhook
        self._clients = tuple(clients)

    # ------------------------------------------------------------------
    # sync runs
    # ------------------------------------------------------------------
    async def run_sync(self, request: SyncRequest, *, cancel_event: asyncio.Event | None = None) -> SyncResult:
        job_id = self._repository.next_job_id()
        self._repository.start_job(job_id, request.list_id)
        try:
            result = await self._pipeline.run(request, cancel_event=cancel_event)
        except SprintPilotError as exc:
            self._repository.finish_job(job_id, status="failed", list_id=request.list_id, error=str(exc))
            raise
        except BaseException as exc:
            self._repository.finish_job(
                job_id, status="failed", list_id=request.list_id, error=f"{type(exc).__name__}: {exc}"
            )
            raise
        self._repository.finish_job(
            job_id,
            status="success",
            list_id=result.list_id,
            ticket_count=result.ticket_count,
            webhook_delivered=result.webhook_delivered,
            message=result.message,
            error=result.error,
        )
        return result

    # ------------------------------------------------------------------
    # job history
    # ------------------------------------------------------------------
    def list_jobs(self, limit: int = 50) -> list[dict[str, object]]:
        return self._repository.list_jobs(limit)

    def get_job(self, job_id: str) -> dict[str, object] | None:
        return self._repository.get_job(job_id)

    # ------------------------------------------------------------------
    # webhook diagnostics
    # ------------------------------------------------------------------
    async def test_webhook(self, url: str) -> tuple[bool, str]:
        if self._webhook is None:
            return False, "Webhook client not configured"
        return await self._webhook.send_test(url)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()

    async def aclose(self) -> None:
        """Close the HTTP clients the service owns."""

        for client in self._clients:
            await client.aclose()


def build_sync_service(settings: Settings, repository: JobRepository | None = None) -> SyncService:
    """Wire the production clients from ``settings``."""

    source = ClickUpClient(settings)
    model = ChatCompletionsClient(
        settings.openai_api_key,
        settings.model,
        base_url=settings.openai_base_url,
    )
    webhook = WebhookClient()
    pipeline = SprintSyncPipeline(
        source,
        TicketAnalyzer(model),
        webhook,
        concurrency=settings.concurrency,
    )
    return SyncService(
        pipeline,
        repository or InMemoryJobRepository(),
        webhook,
        clients=(source, model, webhook),
    )


_service: SyncService | None = None


def configure_sync_service(service: SyncService | None) -> None:
    """Install the service used by the HTTP routes."""

    global _service
    _service = service


def get_sync_service() -> SyncService:
    """Return the configured sync service for the process."""

    if _service is None:
        raise RuntimeError("Sync service is not configured; call create_app() first")
    return _service
