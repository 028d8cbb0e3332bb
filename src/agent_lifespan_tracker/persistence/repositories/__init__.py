# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (key_value)."""

from agent_lifespan_tracker.persistence.repositories.interfaces import IEventStore
from agent_lifespan_tracker.persistence.repositories.key_value import KeyValueEventStore

__all__ = ["IEventStore", "KeyValueEventStore"]
