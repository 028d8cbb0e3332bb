# -*- coding: utf-8 -*-
"""SyncOrchestrator: one ingestion cycle from the chain into the event store.

Two states, chosen from the stored checkpoint:

- Bootstrapping (no checkpoint): scan ``[head - lookback_blocks, head]``.
- Incremental (checkpoint ``c``): scan ``[c + 1, head]``, no-op when already current.

The checkpoint only advances to the last height confirmed contiguously
from the start of the scan, so a failed chunk, a timeout or an unreadable
block timestamp is retried on the next cycle instead of being skipped.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.contextvars import bound_contextvars

from agent_lifespan_tracker.clients.rpc_client import parse_quantity
from agent_lifespan_tracker.exceptions import ConfigurationError, DecodeError, TransientFetchError
from agent_lifespan_tracker.models.domain_event import DomainEvent
from agent_lifespan_tracker.utils.dedupe import tx_key
from agent_lifespan_tracker.utils.validation import mask_address

if TYPE_CHECKING:
    from agent_lifespan_tracker.clients.rpc_client import RawLogSchema, RpcClient
    from agent_lifespan_tracker.persistence.repositories.interfaces.event_store import IEventStore
    from agent_lifespan_tracker.services.decoder import EventDecoder
    from agent_lifespan_tracker.services.fetcher import BlockRange, LogFetcher


class SyncMode(str, Enum):
    BOOTSTRAPPING = "bootstrapping"
    INCREMENTAL = "incremental"


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one sync cycle."""

    mode: SyncMode
    from_block: int
    to_block: int
    new_event_count: int
    checkpoint: Optional[int]
    """Stored checkpoint after the cycle (None if nothing was ever confirmed)."""
    complete: bool
    """False when part of [from_block, to_block] is left for the next cycle."""
    failed_ranges: tuple["BlockRange", ...] = field(default_factory=tuple)
    decode_failures: int = 0
    timed_out: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "from_block": self.from_block,
            "to_block": self.to_block,
            "new_event_count": self.new_event_count,
            "checkpoint": self.checkpoint,
            "complete": self.complete,
            "failed_ranges": [[r.start, r.end] for r in self.failed_ranges],
            "decode_failures": self.decode_failures,
            "timed_out": self.timed_out,
        }


def _is_empty_code(code: Any) -> bool:
    return not isinstance(code, str) or code.strip().lower() in ("", "0x", "0x0")


class SyncOrchestrator:
    """Runs fetch -> decode -> merge -> checkpoint for one cycle."""

    def __init__(
        self,
        rpc_client: RpcClient,
        fetcher: LogFetcher,
        decoder: EventDecoder,
        store: IEventStore,
        *,
        contract_address: str,
        lookback_blocks: int,
        deadline_seconds: Optional[float] = None,
        verify_contract: bool = True,
        clock: Callable[[], float] = time.monotonic,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            rpc_client: JSON-RPC client for head height, block timestamps and code.
            fetcher: Chunked log fetcher.
            decoder: LifeExtended decoder.
            store: Event store (merge / checkpoint).
            contract_address: Contract checked by verify_contract.
            lookback_blocks: Bootstrap window in blocks.
            deadline_seconds: Default time budget per cycle (None or 0 = unbounded).
            verify_contract: Check once that code exists at contract_address.
            clock: Monotonic clock shared with the fetcher's deadline.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._rpc = rpc_client
        self._fetcher = fetcher
        self._decoder = decoder
        self._store = store
        self._contract_address = contract_address
        self._lookback_blocks = max(0, lookback_blocks)
        self._deadline_seconds = deadline_seconds
        self._verify_contract = verify_contract
        self._contract_verified = False
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def sync(self, *, deadline_seconds: Optional[float] = None) -> SyncResult:
        """Run one cycle. Idempotent when already current.

        Partial progress is not an error: the result's checkpoint stops short
        of to_block and ``complete`` is False.

        Raises:
            TransientFetchError: If the head height cannot be read.
            FetchFailedError: If every chunk of the scan failed (store untouched).
            StoreUnavailableError: If the store is down.
            ConfigurationError: If no contract code exists at the configured address.
        """
        budget = self._deadline_seconds if deadline_seconds is None else deadline_seconds
        deadline = self._clock() + budget if budget else None

        head = await self._rpc.get_block_number()
        checkpoint = await self._store.get_checkpoint()

        if checkpoint is None:
            mode = SyncMode.BOOTSTRAPPING
            from_block = max(0, head - self._lookback_blocks)
        else:
            mode = SyncMode.INCREMENTAL
            from_block = checkpoint + 1

        with bound_contextvars(sync_mode=mode.value, sync_from_block=from_block, sync_head=head):
            if from_block > head:
                self._logger.info("sync_already_current", sync_checkpoint=checkpoint)
                return SyncResult(
                    mode=mode,
                    from_block=from_block,
                    to_block=head,
                    new_event_count=0,
                    checkpoint=checkpoint,
                    complete=True,
                )

            await self._ensure_contract()

            self._logger.info("sync_started", sync_block_count=head - from_block + 1)
            fetched = await self._fetcher.fetch(from_block, head, deadline=deadline)

            events, confirmed, decode_failures = await self._decode(fetched.logs, fetched.confirmed_through)
            added = await self._store.merge(events)

            new_checkpoint = checkpoint
            if confirmed >= from_block:
                new_checkpoint = await self._store.set_checkpoint(confirmed)

            result = SyncResult(
                mode=mode,
                from_block=from_block,
                to_block=head,
                new_event_count=added,
                checkpoint=new_checkpoint,
                complete=confirmed >= head,
                failed_ranges=tuple(fetched.failed_ranges),
                decode_failures=decode_failures,
                timed_out=fetched.timed_out,
            )
            log = self._logger.info if result.complete else self._logger.warning
            log(
                "sync_finished" if result.complete else "sync_incomplete",
                sync_new_event_count=added,
                sync_confirmed_through=confirmed,
                sync_checkpoint=new_checkpoint,
                sync_failed_chunk_count=len(result.failed_ranges),
                sync_decode_failures=decode_failures,
                sync_timed_out=result.timed_out,
            )
            return result

    async def _ensure_contract(self) -> None:
        if not self._verify_contract or self._contract_verified:
            return
        code = await self._rpc.get_code(self._contract_address)
        if _is_empty_code(code):
            self._logger.error(
                "sync_contract_missing",
                contract_address=mask_address(self._contract_address),
            )
            raise ConfigurationError(f"No contract code at {self._contract_address}")
        self._contract_verified = True

    async def _decode(
        self,
        logs: list[RawLogSchema],
        confirmed_through: int,
    ) -> tuple[list[DomainEvent], int, int]:
        """Decode confirmed logs in chain order, resolving each block timestamp once.

        Returns:
            (events, confirmed height after timestamp failures, number of dropped logs)
        """
        positioned: list[tuple[int, int, RawLogSchema]] = []
        failures = 0
        for raw in logs:
            try:
                block = parse_quantity(raw.get("blockNumber"))
                index = parse_quantity(raw.get("logIndex") or 0)
            except ValueError as e:
                failures += 1
                self._logger.warning("sync_log_dropped", tx_id=tx_key(dict(raw)), error_message=str(e))
                continue
            if block <= confirmed_through:
                positioned.append((block, index, raw))
        positioned.sort(key=lambda item: (item[0], item[1]))

        confirmed = confirmed_through
        timestamps: dict[int, int] = {}
        events: list[DomainEvent] = []
        for block, _index, raw in positioned:
            if block not in timestamps:
                try:
                    timestamps[block] = await self._rpc.get_block_timestamp(block)
                except TransientFetchError as e:
                    # Everything from this block on waits for the next cycle.
                    confirmed = block - 1
                    self._logger.warning(
                        "sync_block_timestamp_unavailable",
                        block_number=block,
                        error_message=e.detail,
                    )
                    break
            try:
                events.append(self._decoder.decode(raw, timestamps[block]))
            except DecodeError as e:
                failures += 1
                self._logger.warning("sync_log_dropped", tx_id=e.tx_id, error_message=e.detail)
        return events, confirmed, failures
