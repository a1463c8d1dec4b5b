"""Error taxonomy shared by the sync pipeline and the HTTP layer."""
from __future__ import annotations


class SprintPilotError(RuntimeError):
    """Base class for failures that end a sync run."""

    kind = "error"


class ConfigError(SprintPilotError):
    """Raised when a required identifier or credential is missing."""

    kind = "config"


class AuthError(SprintPilotError):
    """Raised when an upstream service rejects our credentials."""

    kind = "auth"


class SignatureError(AuthError):
    """Raised when a webhook signature header is missing or does not match."""

    kind = "signature"


class RateLimited(SprintPilotError):
    """Raised when the task source throttles us. Never retried automatically."""

    kind = "rate_limited"


class RequestTimeout(SprintPilotError):
    """Raised when an outbound call exceeds its deadline."""

    kind = "timeout"

    def __init__(self, stage: str, message: str | None = None) -> None:
        self.stage = stage
        super().__init__(message or f"{stage} request timed out")


class UpstreamError(SprintPilotError):
    """Raised for non-2xx responses and transport failures."""

    kind = "upstream"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class SyncCancelled(SprintPilotError):
    """Raised between batch groups when the caller asked the run to stop."""

    kind = "cancelled"


__all__ = [
    "AuthError",
    "ConfigError",
    "RateLimited",
    "RequestTimeout",
    "SignatureError",
    "SprintPilotError",
    "SyncCancelled",
    "UpstreamError",
]
