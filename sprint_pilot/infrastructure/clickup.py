"""Integration with the ClickUp v2 task API."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from sprint_pilot.config import Settings
from sprint_pilot.core.errors import AuthError, RateLimited, RequestTimeout, UpstreamError
from sprint_pilot.core.schema import WorkItem
from sprint_pilot.core.validation import parse_work_item
from sprint_pilot.logging import get_logger

logger = get_logger("clickup")

STAGE = "task_source"


@dataclass(slots=True)
class FetchResult:
    """Tasks fetched from one list plus the id that was actually queried."""

    items: list[WorkItem]
    list_id: str


class ClickUpClient:
    """Reads the tasks of a ClickUp list."""

    def __init__(
        self,
        settings: Settings,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._api_base = settings.clickup_api_base.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._timeout = timeout

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _build_params(include_subtasks: bool, statuses: Sequence[str] | None) -> list[tuple[str, str]]:
        params = [("include_subtasks", "true" if include_subtasks else "false")]
        for status in statuses or ():
            params.append(("statuses[]", status))
        return params

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        if response.status_code == 401:
            raise AuthError("Invalid ClickUp API token. Check CLICKUP_API_TOKEN.")
        if response.status_code == 429:
            raise RateLimited("ClickUp API rate limit exceeded. Please try again later.")
        raise UpstreamError(
            f"ClickUp API error: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )

    @staticmethod
    def _parse_tasks(raw_tasks: list[Any]) -> list[WorkItem]:
        items: list[WorkItem] = []
        for raw in raw_tasks:
            parsed = parse_work_item(raw)
            if parsed.coerced:
                logger.warning(
                    "Task %s failed validation, using coerced defaults: %s",
                    parsed.item.id or "<no id>",
                    "; ".join(parsed.errors),
                )
            items.append(parsed.item)
        return items

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def fetch_items(
        self,
        list_id: str | None = None,
        *,
        include_subtasks: bool = True,
        statuses: Sequence[str] | None = None,
    ) -> FetchResult:
        resolved_list_id = self._settings.resolve_list_id(list_id)
        token = self._settings.require_clickup_token()

        url = f"{self._api_base}/list/{resolved_list_id}/task"
        headers = {"Authorization": token, "Content-Type": "application/json"}
        params = self._build_params(include_subtasks, statuses)

        logger.info("Fetching tasks from ClickUp list %s", resolved_list_id)
        try:
            response = await self._client.get(url, params=params, headers=headers, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            raise RequestTimeout(
                STAGE, f"ClickUp API request timed out after {self._timeout:g} seconds"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"ClickUp API request failed: {exc}") from exc

        self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError("ClickUp API returned invalid JSON", status_code=response.status_code) from exc

        raw_tasks = data.get("tasks") if isinstance(data, dict) else None
        if not isinstance(raw_tasks, list):
            raise UpstreamError("ClickUp API response has no tasks array", status_code=response.status_code)

        items = self._parse_tasks(raw_tasks)
        logger.info("Fetched %d tasks from list %s", len(items), resolved_list_id)
        return FetchResult(items=items, list_id=resolved_list_id)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["ClickUpClient", "FetchResult"]
