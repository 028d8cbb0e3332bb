# -*- coding: utf-8 -*-
"""Stats aggregation: pure fold of the event history into per-agent records.

No I/O, no clock reads: ``now`` is always a parameter, so the same events
and the same ``now`` give identical output on every run.

Burned amounts are exact Decimals and day counts use integer floor
division, so results never depend on float rounding.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from decimal import Context, Decimal

from agent_lifespan_tracker.models.agent_stats import AgentMetrics, AgentStats, AgentStatus
from agent_lifespan_tracker.models.domain_event import DomainEvent
from agent_lifespan_tracker.services.stats.status_policy import StatusPolicy

MS_PER_DAY = 86_400_000
DAYS_PER_EXTENSION_WEEK = 7
DEFAULT_BURN_DECIMALS = 18
DEFAULT_STABLE_UNITS_PER_WEEK = 1_000_000
RECENT_WINDOW = timedelta(days=7)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
# Wide enough that any uint256 sum divided by 10**decimals stays exact.
_EXACT = Context(prec=200)


def epoch_millis(instant: datetime) -> int:
    """Exact integer milliseconds since the Unix epoch (instant must be aware)."""
    if instant.tzinfo is None:
        raise ValueError("instant must be timezone-aware")
    return (instant - _EPOCH) // timedelta(milliseconds=1)


def remaining_days(new_expiry_time: int, now: datetime) -> int:
    """floor((expiry_s * 1000 - now_ms) / 86_400_000); negative once expired."""
    return (new_expiry_time * 1000 - epoch_millis(now)) // MS_PER_DAY


def extension_duration_days(payment_amount: int, stable_units_per_week: int = DEFAULT_STABLE_UNITS_PER_WEEK) -> int:
    """floor(payment / units_per_week * 7)."""
    return (payment_amount * DAYS_PER_EXTENSION_WEEK) // stable_units_per_week


def burned_tokens(burned_amount: int, decimals: int = DEFAULT_BURN_DECIMALS) -> Decimal:
    """Base units -> whole tokens, exactly."""
    return _EXACT.divide(Decimal(burned_amount), Decimal(10) ** decimals)


def aggregate(
    events: Iterable[DomainEvent],
    now: datetime,
    policy: StatusPolicy | None = None,
    *,
    burn_decimals: int = DEFAULT_BURN_DECIMALS,
    stable_units_per_week: int = DEFAULT_STABLE_UNITS_PER_WEEK,
) -> list[AgentStats]:
    """Fold events into one AgentStats per agent, evaluated at ``now``.

    1. Sort by (observed_at, tx_id).
    2. First event of an agent initializes its record. Later events always add
       their burn; they overwrite the "latest" fields only when strictly newer
       than last_extended_at, so an older event never regresses the record.
    3. Status comes from ``policy`` applied to the current remaining_days.

    Returns:
        Records sorted by last_extended_at descending (agent_id ascending on ties).
    """
    policy = policy or StatusPolicy()
    records: dict[str, AgentStats] = {}

    for event in sorted(events, key=lambda e: e.sort_key):
        burned = burned_tokens(event.burned_amount, burn_decimals)
        days_left = remaining_days(event.new_expiry_time, now)
        duration = extension_duration_days(event.payment_amount, stable_units_per_week)

        record = records.get(event.agent_id)
        if record is None:
            records[event.agent_id] = AgentStats(
                agent_id=event.agent_id,
                total_burned=burned,
                last_extended_at=event.observed_at,
                first_extended_at=event.observed_at,
                remaining_days=days_left,
                previous_remaining_days=days_left,
                last_extension_duration_days=duration,
                status=policy.classify(days_left),
            )
            continue

        record.total_burned = _EXACT.add(record.total_burned, burned)
        if event.observed_at > record.last_extended_at:
            record.previous_remaining_days = record.remaining_days
            record.last_extended_at = event.observed_at
            record.remaining_days = days_left
            record.last_extension_duration_days = duration
            record.status = policy.classify(days_left)

    ordered = sorted(records.values(), key=lambda s: s.agent_id)
    ordered.sort(key=lambda s: s.last_extended_at, reverse=True)
    return ordered


def summarize(
    stats: Sequence[AgentStats],
    events: Iterable[DomainEvent],
    now: datetime,
    *,
    burn_decimals: int = DEFAULT_BURN_DECIMALS,
    stable_units_per_week: int = DEFAULT_STABLE_UNITS_PER_WEEK,
) -> AgentMetrics:
    """Dashboard summary: agent counts by status, total burn, and last-7-days activity."""
    counts = {status: 0 for status in AgentStatus}
    total = Decimal(0)
    for s in stats:
        counts[s.status] += 1
        total = _EXACT.add(total, s.total_burned)

    since = now - RECENT_WINDOW
    recent = [e for e in events if since <= e.observed_at <= now]
    burned_recent = Decimal(0)
    durations: list[int] = []
    for e in recent:
        burned_recent = _EXACT.add(burned_recent, burned_tokens(e.burned_amount, burn_decimals))
        d = extension_duration_days(e.payment_amount, stable_units_per_week)
        if d > 0:
            durations.append(d)
    average = _EXACT.divide(Decimal(sum(durations)), Decimal(len(durations))) if durations else Decimal(0)

    return AgentMetrics(
        total_agents=len(stats),
        active_agents=counts[AgentStatus.ACTIVE],
        critical_agents=counts[AgentStatus.CRITICAL],
        inactive_agents=counts[AgentStatus.INACTIVE],
        total_burned=total,
        burned_last_week=burned_recent,
        average_extension_days=average,
    )
