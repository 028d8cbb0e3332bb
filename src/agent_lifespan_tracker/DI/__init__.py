"""Dependency injection."""

from agent_lifespan_tracker.DI.container import Container

__all__ = ["Container"]
