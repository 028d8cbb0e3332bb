"""Application-facing facade."""

from agent_lifespan_tracker.services.tracker.lifespan_tracker import LifespanTracker

__all__ = ["LifespanTracker"]
