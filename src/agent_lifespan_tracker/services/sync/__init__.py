"""Ingestion cycle (bootstrap / incremental)."""

from agent_lifespan_tracker.services.sync.sync_orchestrator import (
    SyncMode,
    SyncOrchestrator,
    SyncResult,
)

__all__ = [
    "SyncMode",
    "SyncOrchestrator",
    "SyncResult",
]
