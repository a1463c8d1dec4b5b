"""Process configuration for the sync service.

Everything the pipeline needs from the environment is read once by
:func:`load_settings` and handed to the components explicitly, so tests can
build a :class:`Settings` by hand without touching ``os.environ``.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from sprint_pilot.core.errors import ConfigError

CLICKUP_API_BASE = "https://api.clickup.com/api/v2"
OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"
DEFAULT_CONCURRENCY = 5
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


@dataclass(slots=True)
class Settings:
    """Credentials, defaults and tuning knobs for one service process."""

    clickup_api_token: str | None = None
    clickup_list_id: str | None = None
    clickup_api_base: str = CLICKUP_API_BASE
    openai_api_key: str | None = None
    openai_base_url: str = OPENAI_BASE_URL
    model: str = DEFAULT_MODEL
    concurrency: int = DEFAULT_CONCURRENCY
    receiver_secret: str | None = None
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    def require_clickup_token(self) -> str:
        if not self.clickup_api_token:
            raise ConfigError("CLICKUP_API_TOKEN is not configured")
        return self.clickup_api_token

    def resolve_list_id(self, list_id: str | None) -> str:
        resolved = list_id or self.clickup_list_id
        if not resolved:
            raise ConfigError("No ClickUp list id given and CLICKUP_LIST_ID is not configured")
        return resolved


def _parse_int(value: str | None, default: int, name: str) -> int:
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < 1:
        raise ConfigError(f"{name} must be at least 1")
    return parsed


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from environment variables."""

    env = os.environ if environ is None else environ

    origins_env = env.get("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = list(DEFAULT_CORS_ORIGINS)

    return Settings(
        clickup_api_token=env.get("CLICKUP_API_TOKEN") or None,
        clickup_list_id=env.get("CLICKUP_LIST_ID") or None,
        clickup_api_base=(env.get("CLICKUP_API_BASE") or CLICKUP_API_BASE).rstrip("/"),
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        openai_base_url=(env.get("OPENAI_BASE_URL") or OPENAI_BASE_URL).rstrip("/"),
        model=env.get("SPRINT_PILOT_MODEL") or DEFAULT_MODEL,
        concurrency=_parse_int(env.get("SPRINT_PILOT_CONCURRENCY"), DEFAULT_CONCURRENCY, "SPRINT_PILOT_CONCURRENCY"),
        receiver_secret=env.get("SPRINT_PILOT_RECEIVER_SECRET") or None,
        cors_origins=origins,
        log_level=env.get("SPRINT_PILOT_LOG_LEVEL") or "INFO",
    )


__all__ = ["Settings", "load_settings"]
