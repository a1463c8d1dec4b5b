"""Application services."""

from .analysis import TicketAnalyzer, fallback_analysis
from .sync import SyncService, build_sync_service, configure_sync_service, get_sync_service

__all__ = [
    "SyncService",
    "TicketAnalyzer",
    "build_sync_service",
    "configure_sync_service",
    "fallback_analysis",
    "get_sync_service",
]
