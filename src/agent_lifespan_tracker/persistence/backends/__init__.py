"""Key-value backends: interface and implementations (in-memory, Redis)."""

from agent_lifespan_tracker.persistence.backends.in_memory import InMemoryKeyValueBackend
from agent_lifespan_tracker.persistence.backends.interfaces import IKeyValueBackend
from agent_lifespan_tracker.persistence.backends.redis_backend import RedisKeyValueBackend

__all__ = [
    "IKeyValueBackend",
    "InMemoryKeyValueBackend",
    "RedisKeyValueBackend",
]
