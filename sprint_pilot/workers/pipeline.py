from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Protocol, Sequence

from sprint_pilot.core.errors import SprintPilotError, SyncCancelled
from sprint_pilot.core.formatter import format_sprint
from sprint_pilot.core.schema import (
    Analysis,
    AnalyzedItem,
    DeliveryPayload,
    ProjectStructure,
    SyncMetadata,
    SyncRequest,
    SyncResult,
    WorkItem,
)
from sprint_pilot.infrastructure.clickup import FetchResult
from sprint_pilot.logging import get_logger

logger = get_logger("pipeline")

DEFAULT_CONCURRENCY = 5
NO_TICKETS_MESSAGE = "No tickets found in the list"


class TaskSource(Protocol):
    async def fetch_items(
        self,
        list_id: str | None = None,
        *,
        include_subtasks: bool = True,
        statuses: Sequence[str] | None = None,
    ) -> FetchResult: ...


class ItemAnalyzer(Protocol):
    async def analyze(self, item: WorkItem, structure: ProjectStructure) -> Analysis: ...


class Deliverer(Protocol):
    async def deliver(
        self,
        url: str,
        payload: DeliveryPayload,
        secret: str | None = None,
        max_attempts: int = 3,
    ) -> int: ...


def utc_timestamp(moment: datetime | None = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def analyze_all(
    analyzer: ItemAnalyzer,
    items: Sequence[WorkItem],
    structure: ProjectStructure,
    concurrency: int = DEFAULT_CONCURRENCY,
    *,
    cancel_event: asyncio.Event | None = None,
) -> list[AnalyzedItem]:
    """Analyse ``items`` in sequential groups of ``concurrency``.

    Calls inside a group run concurrently; the next group starts only after the
    previous one has finished, so at most ``concurrency`` model calls are in
    flight. Output order matches input order.
    """

    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    total = len(items)
    results: list[AnalyzedItem] = []
    for start in range(0, total, concurrency):
        if cancel_event is not None and cancel_event.is_set():
            raise SyncCancelled(f"Sync cancelled after analysing {len(results)}/{total} tickets")

        group = items[start : start + concurrency]
        analyses = await asyncio.gather(*(analyzer.analyze(item, structure) for item in group))
        results.extend(AnalyzedItem(ticket=item, analysis=analysis) for item, analysis in zip(group, analyses))
        logger.info("Analyzed %d/%d tickets", len(results), total)

    return results


class SprintSyncPipeline:
    """Fetch, analyse, render and deliver one sprint document."""

    def __init__(
        self,
        source: TaskSource,
        analyzer: ItemAnalyzer,
        delivery: Deliverer,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        max_attempts: int = 3,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._source = source
        self._analyzer = analyzer
        self._delivery = delivery
        self._concurrency = concurrency
        self._max_attempts = max_attempts
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def run(self, request: SyncRequest, *, cancel_event: asyncio.Event | None = None) -> SyncResult:
        fetched = await self._source.fetch_items(request.list_id)

        if not fetched.items:
            logger.info("List %s has no tickets; skipping analysis and delivery", fetched.list_id)
            return SyncResult(
                success=True,
                ticket_count=0,
                webhook_delivered=False,
                message=NO_TICKETS_MESSAGE,
                list_id=fetched.list_id,
            )

        logger.info("Analyzing %d tickets", len(fetched.items))
        analyzed = await analyze_all(
            self._analyzer,
            fetched.items,
            request.codebase_map,
            self._concurrency,
            cancel_event=cancel_event,
        )

        metadata = SyncMetadata(
            sync_timestamp=utc_timestamp(self._clock()),
            ticket_count=len(analyzed),
            list_id=fetched.list_id,
        )
        payload = DeliveryPayload(
            sprint_markdown=format_sprint(analyzed, metadata),
            tickets=analyzed,
            metadata=metadata,
        )

        count = len(analyzed)
        logger.info("Delivering sprint document to webhook")
        try:
            await self._delivery.deliver(
                str(request.webhook_url),
                payload,
                request.webhook_secret,
                self._max_attempts,
            )
        except SprintPilotError as exc:
            logger.error("Webhook delivery failed: %s", exc)
            return SyncResult(
                success=True,
                ticket_count=count,
                webhook_delivered=False,
                message=f"Analyzed {count} tickets but webhook delivery failed",
                list_id=fetched.list_id,
                error=str(exc),
            )

        return SyncResult(
            success=True,
            ticket_count=count,
            webhook_delivered=True,
            message=f"Successfully analyzed {count} tickets and delivered to webhook",
            list_id=fetched.list_id,
        )


__all__ = [
    "NO_TICKETS_MESSAGE",
    "SprintSyncPipeline",
    "analyze_all",
    "utc_timestamp",
]
