# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in key_value/."""

from agent_lifespan_tracker.persistence.repositories.interfaces.event_store import IEventStore

__all__ = ["IEventStore"]
