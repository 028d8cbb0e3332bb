"""AgentStats: per-agent state derived by folding DomainEvents.

Not persisted. remaining_days and status depend on the evaluation instant,
so a record is only meaningful together with the ``now`` it was computed for.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class AgentStatus(str, Enum):
    """Health classification of an agent."""

    ACTIVE = "active"
    """More than the critical threshold of days left."""
    CRITICAL = "critical"
    """Still alive, at most the critical threshold of days left."""
    INACTIVE = "inactive"
    """Expired (zero or negative remaining days)."""


@dataclass(slots=True)
class AgentStats:
    """Current-state record for one agent."""

    agent_id: str
    total_burned: Decimal
    """Running sum of burned_amount, in whole tokens."""
    last_extended_at: datetime
    first_extended_at: datetime
    remaining_days: int
    """Whole days until expiry relative to ``now``; negative once expired."""
    previous_remaining_days: int
    """remaining_days before the most recent extension."""
    last_extension_duration_days: int
    status: AgentStatus


@dataclass(frozen=True, slots=True)
class AgentMetrics:
    """Dashboard-level summary over all agents."""

    total_agents: int
    active_agents: int
    critical_agents: int
    inactive_agents: int
    total_burned: Decimal
    burned_last_week: Decimal
    """Burn of events observed in the 7 days before ``now``."""
    average_extension_days: Decimal
    """Mean extension duration of the last 7 days' events (0 when none)."""
