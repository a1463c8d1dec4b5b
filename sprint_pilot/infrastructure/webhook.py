"""Delivery of sprint documents to caller-supplied webhooks."""
from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import httpx

from sprint_pilot.core.errors import RequestTimeout, SprintPilotError, UpstreamError
from sprint_pilot.core.schema import DeliveryPayload
from sprint_pilot.core.signing import SIGNATURE_HEADER, sign_body
from sprint_pilot.logging import get_logger

logger = get_logger("webhook")

STAGE = "delivery"
USER_AGENT = "Sprint-Pilot/1.0"

Sleep = Callable[[float], Awaitable[None]]


def serialize_payload(payload: DeliveryPayload | dict[str, Any]) -> bytes:
    """Serialize once; the signature is computed over exactly these bytes."""

    data = payload.to_wire() if isinstance(payload, DeliveryPayload) else payload
    return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class WebhookClient:
    """POSTs JSON payloads with optional HMAC signing and exponential backoff."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._timeout = timeout
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._sleep = sleep

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _build_headers(body: bytes, secret: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        if secret:
            headers[SIGNATURE_HEADER] = sign_body(body, secret)
        return headers

    async def _post_once(self, url: str, body: bytes, headers: dict[str, str]) -> None:
        try:
            response = await self._client.post(url, content=body, headers=headers, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            raise RequestTimeout(STAGE, f"Webhook delivery timed out after {self._timeout:g} seconds") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Webhook delivery failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(
                f"Webhook delivery failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def deliver(
        self,
        url: str,
        payload: DeliveryPayload | dict[str, Any],
        secret: str | None = None,
        max_attempts: int = 3,
    ) -> int:
        """Deliver ``payload`` and return the number of attempts used.

        The delay after failed attempt ``n`` (0-indexed) is ``2 ** n`` seconds.
        The last error is raised once every attempt has failed.
        """

        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        body = serialize_payload(payload)
        headers = self._build_headers(body, secret)

        last_error: SprintPilotError | None = None
        for attempt in range(max_attempts):
            try:
                await self._post_once(url, body, headers)
            except SprintPilotError as exc:
                last_error = exc
                logger.warning("Webhook delivery attempt %d/%d failed: %s", attempt + 1, max_attempts, exc)
                if attempt < max_attempts - 1:
                    await self._sleep(2**attempt)
                continue
            logger.info("Webhook delivered to %s on attempt %d", url, attempt + 1)
            return attempt + 1

        raise last_error or UpstreamError("Webhook delivery failed after retries")

    async def send_test(self, url: str) -> tuple[bool, str]:
        """Send a canned sprint document once, without retry."""

        payload = {
            "sprintMarkdown": "# Test Sprint\n\nThis is a test webhook delivery from Sprint Pilot.",
            "tickets": [],
            "metadata": {
                "syncTimestamp": datetime.now(timezone.utc).isoformat(),
                "ticketCount": 0,
                "listId": "test",
            },
        }
        body = serialize_payload(payload)
        try:
            await self._post_once(url, body, self._build_headers(body, None))
        except SprintPilotError as exc:
            return False, str(exc)
        return True, "Webhook test successful"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["WebhookClient", "serialize_payload"]
