# -*- coding: utf-8 -*-
"""Event store over a key-value backend (two keys: history and checkpoint).

Writes are optimistic: read the current value, compute the new one, and
commit with compare-and-set; on conflict re-read and recompute. Concurrent
sync cycles therefore never lose each other's events, and a stale writer
can never move the checkpoint backwards.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Optional

import structlog
from structlog.contextvars import bound_contextvars

from agent_lifespan_tracker.exceptions import StoreConflictError, StoreCorruptError, StoreUnavailableError
from agent_lifespan_tracker.models.domain_event import DomainEvent
from agent_lifespan_tracker.persistence.backends.interfaces import IKeyValueBackend
from agent_lifespan_tracker.persistence.codec import EventCodec
from agent_lifespan_tracker.persistence.repositories.interfaces.event_store import IEventStore


class KeyValueEventStore(IEventStore):
    """IEventStore on any IKeyValueBackend."""

    def __init__(
        self,
        backend: IKeyValueBackend,
        *,
        events_key: str = "life_extended_events",
        checkpoint_key: str = "last_block",
        max_merge_attempts: int = 5,
        codec: Optional[EventCodec] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the store.

        Args:
            backend: Key-value backend (injected).
            events_key: Key holding the serialized event list.
            checkpoint_key: Key holding the checkpoint integer.
            max_merge_attempts: Compare-and-set attempts before StoreConflictError.
            codec: Event/checkpoint codec (defaults to EventCodec()).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._backend = backend
        self._events_key = events_key
        self._checkpoint_key = checkpoint_key
        self._max_attempts = max(1, max_merge_attempts)
        self._codec = codec or EventCodec(get_logger=get_logger)
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._snapshot: Optional[list[DomainEvent]] = None

    @property
    def has_snapshot(self) -> bool:
        """True once a read or write has observed the stored history."""
        return self._snapshot is not None

    async def get_all(self) -> list[DomainEvent]:
        """Return the stored history; serve the last snapshot if the backend is down.

        Raises:
            StoreUnavailableError: If the backend is down and no snapshot exists yet.
        """
        try:
            raw = await self._backend.get(self._events_key)
        except StoreUnavailableError as e:
            if self._snapshot is None:
                raise
            self._logger.warning(
                "event_store_serving_snapshot",
                snapshot_event_count=len(self._snapshot),
                error_message=e.detail,
            )
            return list(self._snapshot)
        try:
            events = self._codec.decode_events(raw)
        except StoreCorruptError as e:
            self._logger.error(
                "event_store_history_corrupt",
                snapshot_event_count=len(self._snapshot or []),
                error_message=e.detail,
            )
            return list(self._snapshot or [])
        self._snapshot = events
        return list(events)

    async def merge(self, new_events: Iterable[DomainEvent]) -> int:
        """Insert events absent by tx_id (first write wins), keep history sorted.

        Raises:
            StoreUnavailableError: If the backend is down.
            StoreConflictError: If every compare-and-set attempt lost a race.
            StoreCorruptError: If the stored history is unreadable; nothing is written.
        """
        incoming = list(new_events)
        if not incoming:
            return 0

        with bound_contextvars(event_store_incoming_count=len(incoming)):
            for attempt in range(1, self._max_attempts + 1):
                raw = await self._backend.get(self._events_key)
                existing = self._codec.decode_events(raw)
                by_tx = {e.tx_id: e for e in existing}
                added = 0
                for event in incoming:
                    if event.tx_id not in by_tx:
                        by_tx[event.tx_id] = event
                        added += 1

                merged = sorted(by_tx.values(), key=lambda e: e.sort_key)
                if added == 0:
                    self._snapshot = merged
                    return 0

                encoded = self._codec.encode_events(merged)
                if await self._backend.compare_and_set(self._events_key, raw, encoded):
                    self._snapshot = merged
                    self._logger.info(
                        "event_store_merged",
                        event_store_existing_count=len(existing),
                        event_store_added_count=added,
                        event_store_total_count=len(merged),
                        event_store_attempt=attempt,
                    )
                    return added

                self._logger.debug("event_store_merge_conflict", event_store_attempt=attempt)

        raise StoreConflictError(
            f"merge lost {self._max_attempts} consecutive compare-and-set races"
        )

    async def get_checkpoint(self) -> Optional[int]:
        """Return the checkpoint or None. Backend errors propagate."""
        return self._codec.decode_checkpoint(await self._backend.get(self._checkpoint_key))

    async def set_checkpoint(self, height: int) -> int:
        """Monotonic compare-and-set of the checkpoint.

        Raises:
            ValueError: If height is negative.
            StoreUnavailableError: If the backend is down.
            StoreConflictError: If every attempt lost a race.
        """
        if height < 0:
            raise ValueError("checkpoint height must be >= 0")

        for attempt in range(1, self._max_attempts + 1):
            raw = await self._backend.get(self._checkpoint_key)
            current = self._codec.decode_checkpoint(raw)
            if current is not None and height <= current:
                if height < current:
                    self._logger.info(
                        "event_store_checkpoint_rewind_ignored",
                        checkpoint_current=current,
                        checkpoint_requested=height,
                    )
                return current
            encoded = self._codec.encode_checkpoint(height)
            if await self._backend.compare_and_set(self._checkpoint_key, raw, encoded):
                self._logger.info(
                    "event_store_checkpoint_advanced",
                    checkpoint_previous=current,
                    checkpoint_current=height,
                )
                return height
            self._logger.debug("event_store_checkpoint_conflict", event_store_attempt=attempt)

        raise StoreConflictError(
            f"set_checkpoint lost {self._max_attempts} consecutive compare-and-set races"
        )

    async def clear(self) -> None:
        """Delete both keys and forget the snapshot."""
        await self._backend.delete(self._events_key, self._checkpoint_key)
        self._snapshot = None
        self._logger.info("event_store_cleared")
