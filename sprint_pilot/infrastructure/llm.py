"""Structured-output calls against an OpenAI-compatible chat completions API.

The analyzer only depends on the :class:`StructuredModelClient` protocol, so
tests substitute a scripted fake and a different provider only needs a
compatible ``generate_json`` coroutine.
"""
from __future__ import annotations

import json
from typing import Any, Protocol

import httpx

from sprint_pilot.core.errors import ConfigError, RequestTimeout, UpstreamError

STAGE = "analysis"


class StructuredModelClient(Protocol):
    """Contract for generative model integrations."""

    async def generate_json(
        self,
        *,
        system: str,
        prompt: str,
        schema: dict[str, Any],
        schema_name: str,
        temperature: float,
    ) -> dict[str, Any]:
        """Return the model's JSON object constrained to ``schema``."""


class ChatCompletionsClient:
    """Client for ``POST {base_url}/chat/completions`` with JSON-schema output."""

    def __init__(
        self,
        api_key: str | None,
        model: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self._timeout = timeout
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _build_payload(
        self,
        system: str,
        prompt: str,
        schema: dict[str, Any],
        schema_name: str,
        temperature: float,
    ) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": self._build_messages(system, prompt),
            "temperature": temperature,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "strict": True, "schema": schema},
            },
        }

    @staticmethod
    def _extract_content(payload: Any) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            refusal = message.get("refusal")
            if isinstance(refusal, str) and refusal:
                raise UpstreamError(f"Model refused the request: {refusal}")
            content = message.get("content")
            if isinstance(content, str):
                return content
        return ""

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def generate_json(
        self,
        *,
        system: str,
        prompt: str,
        schema: dict[str, Any],
        schema_name: str,
        temperature: float,
    ) -> dict[str, Any]:
        if not self._api_key:
            raise ConfigError("OPENAI_API_KEY is not configured")

        payload = self._build_payload(system, prompt, schema, schema_name, temperature)
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            response = await self._client.post(self._endpoint, json=payload, headers=headers, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            raise RequestTimeout(STAGE, f"Model request timed out after {self._timeout:g} seconds") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Model request failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(
                f"Model API error: {response.status_code} {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            content = self._extract_content(response.json())
        except ValueError as exc:
            raise UpstreamError("Model API returned invalid JSON") from exc
        if not content:
            raise UpstreamError("Model API returned an empty response")

        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            raise UpstreamError("Model output is not valid JSON") from exc
        if not isinstance(result, dict):
            raise UpstreamError("Model output is not a JSON object")
        return result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["ChatCompletionsClient", "StructuredModelClient"]
