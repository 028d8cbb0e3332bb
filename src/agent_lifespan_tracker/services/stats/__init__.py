"""Per-agent aggregation and status policy."""

from agent_lifespan_tracker.services.stats.aggregator import (
    aggregate,
    burned_tokens,
    epoch_millis,
    extension_duration_days,
    remaining_days,
    summarize,
)
from agent_lifespan_tracker.services.stats.status_policy import (
    DEFAULT_CRITICAL_THRESHOLD_DAYS,
    StatusPolicy,
)

__all__ = [
    "DEFAULT_CRITICAL_THRESHOLD_DAYS",
    "StatusPolicy",
    "aggregate",
    "burned_tokens",
    "epoch_millis",
    "extension_duration_days",
    "remaining_days",
    "summarize",
]
