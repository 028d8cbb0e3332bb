# -*- coding: utf-8 -*-
"""Domain models."""

from agent_lifespan_tracker.models.agent_profile import AgentProfile, short_agent_label
from agent_lifespan_tracker.models.agent_stats import AgentMetrics, AgentStats, AgentStatus
from agent_lifespan_tracker.models.domain_event import UINT256_MAX, DomainEvent

__all__ = [
    "AgentMetrics",
    "AgentProfile",
    "AgentStats",
    "AgentStatus",
    "DomainEvent",
    "UINT256_MAX",
    "short_agent_label",
]
