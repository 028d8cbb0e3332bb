"""Abstract interface for the event history + checkpoint store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from agent_lifespan_tracker.models.domain_event import DomainEvent


class IEventStore(ABC):
    """Interface for persisting DomainEvents (deduplicated by tx_id) and the sync checkpoint."""

    @abstractmethod
    async def get_all(self) -> list[DomainEvent]:
        """Return the full history ordered by (observed_at, tx_id)."""
        ...

    @abstractmethod
    async def merge(self, new_events: Iterable[DomainEvent]) -> int:
        """Add events whose tx_id is not yet stored. Idempotent and commutative.

        Returns:
            Number of events that were genuinely new.
        """
        ...

    @abstractmethod
    async def get_checkpoint(self) -> int | None:
        """Return the last fully scanned block height, or None if never synced."""
        ...

    @abstractmethod
    async def set_checkpoint(self, height: int) -> int:
        """Advance the checkpoint. Values below the current one are ignored.

        Returns:
            The checkpoint in effect after the call.
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove the history and the checkpoint."""
        ...
