# -*- coding: utf-8 -*-
"""StatusPolicy: pure classification of an agent by its remaining days.

No I/O. Kept apart from the fold so the threshold can change without
touching aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass

from agent_lifespan_tracker.models.agent_stats import AgentStatus

DEFAULT_CRITICAL_THRESHOLD_DAYS = 5


@dataclass(frozen=True)
class StatusPolicy:
    """remaining <= 0 -> inactive; 0 < remaining <= threshold -> critical; else active."""

    critical_threshold_days: int = DEFAULT_CRITICAL_THRESHOLD_DAYS

    def classify(self, remaining_days: int) -> AgentStatus:
        if remaining_days <= 0:
            return AgentStatus.INACTIVE
        if remaining_days <= self.critical_threshold_days:
            return AgentStatus.CRITICAL
        return AgentStatus.ACTIVE
