"""Domain layer definitions."""

from .jobs import SyncJobRecord

__all__ = [
    "SyncJobRecord",
]
