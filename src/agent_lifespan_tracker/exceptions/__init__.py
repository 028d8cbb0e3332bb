"""Exceptions subpackage."""

from agent_lifespan_tracker.exceptions.exceptions import (
    ConfigurationError,
    DecodeError,
    FetchFailedError,
    LifespanTrackerError,
    RateLimitError,
    StoreConflictError,
    StoreCorruptError,
    StoreUnavailableError,
    TransientFetchError,
)

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "FetchFailedError",
    "LifespanTrackerError",
    "RateLimitError",
    "StoreConflictError",
    "StoreCorruptError",
    "StoreUnavailableError",
    "TransientFetchError",
]
