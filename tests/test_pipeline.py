from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import httpx
import pytest

from sprint_pilot.application.analysis import TicketAnalyzer, fallback_analysis
from sprint_pilot.config import Settings
from sprint_pilot.core.errors import AuthError, SyncCancelled, UpstreamError
from sprint_pilot.core.schema import Analysis, ProjectStructure, SyncRequest, WorkItem
from sprint_pilot.core.signing import SIGNATURE_HEADER, verify_signature
from sprint_pilot.infrastructure.clickup import ClickUpClient
from sprint_pilot.infrastructure.webhook import WebhookClient
from sprint_pilot.workers.pipeline import SprintSyncPipeline, analyze_all

STRUCTURE = ProjectStructure.model_validate(
    {
        "routes": [{"path": "/login", "files": ["app/login/page.tsx"]}],
        "components": ["components/auth/login-form.tsx"],
        "actions": ["app/login/actions.ts"],
    }
)
FIXED_NOW = datetime(2025, 3, 4, 9, 15, tzinfo=timezone.utc)


def _item(index: int) -> WorkItem:
    return WorkItem.model_validate({"id": f"t{index}", "name": f"Ticket {index}", "status": {"status": "open"}})


class TrackingAnalyzer:
    """Counts concurrent calls; odd-numbered tickets finish first."""

    def __init__(self) -> None:
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[str] = []

    async def analyze(self, item: WorkItem, structure: ProjectStructure) -> Analysis:
        self.calls.append(item.id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        index = int(item.id[1:])
        for _ in range(3 if index % 2 == 0 else 1):
            await asyncio.sleep(0)
        self.in_flight -= 1
        return Analysis(
            quality_score=(index % 5) + 1,
            complexity_tag="fix",
            suggested_approach=f"do {item.id}",
        )


class ScriptedModel:
    def __init__(self, responses: dict[str, dict | Exception]) -> None:
        self.responses = responses

    async def generate_json(self, *, prompt: str, **_: object) -> dict:
        for title, response in self.responses.items():
            if f"Title: {title}\n" in prompt:
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError("unexpected prompt")


def test_analyze_all_preserves_order_and_caps_concurrency():
    analyzer = TrackingAnalyzer()
    items = [_item(index) for index in range(12)]

    results = asyncio.run(analyze_all(analyzer, items, STRUCTURE, concurrency=5))

    assert [result.ticket.id for result in results] == [item.id for item in items]
    assert [result.analysis.suggested_approach for result in results] == [f"do t{index}" for index in range(12)]
    assert analyzer.max_in_flight == 5


def test_analyze_all_empty_makes_no_calls():
    analyzer = TrackingAnalyzer()

    assert asyncio.run(analyze_all(analyzer, [], STRUCTURE)) == []
    assert analyzer.calls == []


def test_analyze_all_length_matches_with_failing_model():
    model = ScriptedModel({f"Ticket {index}": UpstreamError("boom") for index in range(7)})
    items = [_item(index) for index in range(7)]

    results = asyncio.run(analyze_all(TicketAnalyzer(model), items, STRUCTURE, concurrency=3))

    assert len(results) == len(items)
    assert all(result.analysis == fallback_analysis() for result in results)


def test_analyze_all_rejects_non_positive_concurrency():
    with pytest.raises(ValueError):
        asyncio.run(analyze_all(TrackingAnalyzer(), [_item(0)], STRUCTURE, concurrency=0))


def test_cancel_event_stops_between_groups():
    analyzer = TrackingAnalyzer()
    cancel = asyncio.Event()

    class CancellingAnalyzer:
        async def analyze(self, item, structure):
            cancel.set()
            return await analyzer.analyze(item, structure)

    async def run():
        return await analyze_all(CancellingAnalyzer(), [_item(index) for index in range(4)], STRUCTURE, 2, cancel_event=cancel)

    with pytest.raises(SyncCancelled):
        asyncio.run(run())
    assert analyzer.calls == ["t0", "t1"]


# ----------------------------------------------------------------------
# end-to-end
# ----------------------------------------------------------------------
def _clickup_task(task_id: str, name: str, priority: str) -> dict:
    return {
        "id": task_id,
        "name": name,
        "description": f"{name} description",
        "status": {"status": "to do"},
        "priority": {"id": "1", "priority": priority, "color": "#000"},
        "url": f"https://app.clickup.com/t/{task_id}",
    }


def _build_pipeline(tasks: list[dict], webhook_handler, model, sleep_delays: list[float] | None = None):
    clickup_http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"tasks": tasks}))
    )
    webhook_http = httpx.AsyncClient(transport=httpx.MockTransport(webhook_handler))

    async def record_sleep(delay: float) -> None:
        if sleep_delays is not None:
            sleep_delays.append(delay)

    settings = Settings(clickup_api_token="pk_test", clickup_list_id="901")
    return SprintSyncPipeline(
        ClickUpClient(settings, http_client=clickup_http),
        TicketAnalyzer(model),
        WebhookClient(http_client=webhook_http, sleep=record_sleep),
        clock=lambda: FIXED_NOW,
    )


def _request(**overrides) -> SyncRequest:
    data = {
        "codebaseMap": STRUCTURE.model_dump(by_alias=True),
        "webhookUrl": "https://hooks.example/sprint",
        "webhookSecret": "s3cret",
    }
    data.update(overrides)
    return SyncRequest.model_validate(data)


MODEL_RESPONSES = {
    "Polish footer": {
        "qualityScore": 5,
        "qualityGaps": [],
        "affectedFiles": [],
        "complexityTag": "feature",
        "suggestedApproach": "Restyle the footer.",
    },
    "Login crashes": {
        "qualityScore": 2,
        "qualityGaps": ["No reproduction steps"],
        "affectedFiles": ["app/login/actions.ts"],
        "complexityTag": "fix",
        "suggestedApproach": "Guard the null session.",
    },
}


def test_end_to_end_two_tickets_urgent_fix_first():
    received: dict[str, object] = {}

    def webhook(request: httpx.Request) -> httpx.Response:
        verify_signature(request.content, request.headers.get(SIGNATURE_HEADER), "s3cret")
        received["payload"] = json.loads(request.content)
        return httpx.Response(200)

    tasks = [
        _clickup_task("low1", "Polish footer", "low"),
        _clickup_task("urg1", "Login crashes", "urgent"),
    ]
    pipeline = _build_pipeline(tasks, webhook, ScriptedModel(MODEL_RESPONSES))

    result = asyncio.run(pipeline.run(_request()))

    assert result.success is True
    assert result.ticket_count == 2
    assert result.webhook_delivered is True
    assert result.message == "Successfully analyzed 2 tickets and delivered to webhook"
    assert result.list_id == "901"

    payload = received["payload"]
    markdown = payload["sprintMarkdown"]
    assert markdown.index("[FIX] Login crashes") < markdown.index("[FEATURE] Polish footer")
    assert markdown.startswith("# Sprint: 2025-03-04")
    assert payload["metadata"]["syncTimestamp"] == "2025-03-04T09:15:00.000Z"
    assert payload["metadata"]["ticketCount"] == 2
    assert [ticket["ticket"]["id"] for ticket in payload["tickets"]] == ["low1", "urg1"]
    assert payload["tickets"][1]["analysis"]["qualityScore"] == 2


def test_empty_list_skips_analysis_and_delivery():
    calls: list[int] = []

    def webhook(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200)

    pipeline = _build_pipeline([], webhook, ScriptedModel({}))

    result = asyncio.run(pipeline.run(_request()))

    assert result.success is True
    assert result.ticket_count == 0
    assert result.webhook_delivered is False
    assert result.message == "No tickets found in the list"
    assert calls == []


def test_delivery_failure_keeps_analysis_result():
    delays: list[float] = []
    pipeline = _build_pipeline(
        [_clickup_task("urg1", "Login crashes", "urgent")],
        lambda request: httpx.Response(500),
        ScriptedModel(MODEL_RESPONSES),
        delays,
    )

    result = asyncio.run(pipeline.run(_request()))

    assert result.success is True
    assert result.ticket_count == 1
    assert result.webhook_delivered is False
    assert result.message == "Analyzed 1 tickets but webhook delivery failed"
    assert "500" in (result.error or "")
    assert delays == [1, 2]


def test_source_errors_end_the_run():
    clickup_http = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(401)))
    pipeline = SprintSyncPipeline(
        ClickUpClient(Settings(clickup_api_token="bad", clickup_list_id="901"), http_client=clickup_http),
        TicketAnalyzer(ScriptedModel({})),
        WebhookClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))),
    )

    with pytest.raises(AuthError):
        asyncio.run(pipeline.run(_request()))
