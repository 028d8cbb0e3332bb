"""Key-value backed repository implementations."""

from agent_lifespan_tracker.persistence.repositories.key_value.event_store import KeyValueEventStore

__all__ = ["KeyValueEventStore"]
