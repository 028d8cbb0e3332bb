"""LifespanTracker: the surface exposed to the surrounding application."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Optional

import structlog

from agent_lifespan_tracker.models.agent_profile import AgentProfile
from agent_lifespan_tracker.services.stats import StatusPolicy, aggregate, summarize

if TYPE_CHECKING:
    from agent_lifespan_tracker.clients.profile_api import AgentProfileClient
    from agent_lifespan_tracker.models.agent_stats import AgentMetrics, AgentStats
    from agent_lifespan_tracker.models.domain_event import DomainEvent
    from agent_lifespan_tracker.persistence.repositories.interfaces.event_store import IEventStore
    from agent_lifespan_tracker.services.sync import SyncOrchestrator, SyncResult


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LifespanTracker:
    """Facade over sync, the event history and the derived per-agent view.

    Read methods never touch the chain. When the store is down they serve the
    store's last snapshot; with no snapshot StoreUnavailableError propagates.
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        store: IEventStore,
        *,
        status_policy: Optional[StatusPolicy] = None,
        burn_decimals: int = 18,
        stable_units_per_week: int = 1_000_000,
        profile_client: Optional[AgentProfileClient] = None,
        now: Callable[[], datetime] = _utcnow,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            orchestrator: Sync cycle runner.
            store: Event store shared with the orchestrator.
            status_policy: Status classification (defaults to StatusPolicy()).
            burn_decimals: Decimals of the burned token.
            stable_units_per_week: Stable-asset base units buying one week.
            profile_client: Optional profile lookup.
            now: Clock used when a caller omits ``now``.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._orchestrator = orchestrator
        self._store = store
        self._policy = status_policy or StatusPolicy()
        self._burn_decimals = burn_decimals
        self._stable_units_per_week = stable_units_per_week
        self._profile_client = profile_client
        self._now = now
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def sync(self, *, deadline_seconds: Optional[float] = None) -> SyncResult:
        """Run one ingestion cycle."""
        return await self._orchestrator.sync(deadline_seconds=deadline_seconds)

    async def get_events(self) -> list[DomainEvent]:
        """Full history ordered by (observed_at, tx_id)."""
        return await self._store.get_all()

    async def get_agent_stats(self, now: Optional[datetime] = None) -> list[AgentStats]:
        """Per-agent view evaluated at ``now`` (defaults to the current UTC time)."""
        events = await self._store.get_all()
        return aggregate(
            events,
            now or self._now(),
            self._policy,
            burn_decimals=self._burn_decimals,
            stable_units_per_week=self._stable_units_per_week,
        )

    async def get_metrics(self, now: Optional[datetime] = None) -> AgentMetrics:
        """Dashboard summary evaluated at ``now``."""
        at = now or self._now()
        events = await self._store.get_all()
        stats = aggregate(
            events,
            at,
            self._policy,
            burn_decimals=self._burn_decimals,
            stable_units_per_week=self._stable_units_per_week,
        )
        return summarize(
            stats,
            events,
            at,
            burn_decimals=self._burn_decimals,
            stable_units_per_week=self._stable_units_per_week,
        )

    async def clear_cache(self) -> None:
        """Delete history and checkpoint; the next sync bootstraps."""
        await self._store.clear()
        self._logger.info("tracker_cache_cleared")

    async def get_agent_profiles(self, agent_ids: Iterable[str]) -> dict[str, AgentProfile]:
        """Profiles for agent_ids; placeholders when no profile client is configured."""
        ids = list(dict.fromkeys(agent_ids))
        if self._profile_client is None:
            return {agent_id: AgentProfile.placeholder(agent_id) for agent_id in ids}
        return await self._profile_client.get_profiles(ids)
