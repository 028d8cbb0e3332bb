"""Agent lifespan tracker: LifeExtended event ingestion and per-agent status."""

from agent_lifespan_tracker.config import get_settings
from agent_lifespan_tracker.DI import Container
from agent_lifespan_tracker.services import LifespanTracker, SyncOrchestrator, aggregate

__version__ = "0.1.0"
__all__ = [
    "Container",
    "LifespanTracker",
    "SyncOrchestrator",
    "aggregate",
    "get_settings",
]
