"""Persistence layer (backends, codec, repositories)."""

from agent_lifespan_tracker.persistence.backends import (
    IKeyValueBackend,
    InMemoryKeyValueBackend,
    RedisKeyValueBackend,
)
from agent_lifespan_tracker.persistence.codec import TIMESTAMP_SENTINEL, EventCodec
from agent_lifespan_tracker.persistence.repositories import IEventStore, KeyValueEventStore

__all__ = [
    "EventCodec",
    "IEventStore",
    "IKeyValueBackend",
    "InMemoryKeyValueBackend",
    "KeyValueEventStore",
    "RedisKeyValueBackend",
    "TIMESTAMP_SENTINEL",
]
