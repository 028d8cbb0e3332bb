"""Logging subpackage."""

from agent_lifespan_tracker.logging.config import configure_logging

__all__ = ["configure_logging"]
