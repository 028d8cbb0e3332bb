# -*- coding: utf-8 -*-
"""Unit tests for SyncOrchestrator."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from agent_lifespan_tracker.exceptions import (
    ConfigurationError,
    FetchFailedError,
    StoreCorruptError,
    StoreUnavailableError,
    TransientFetchError,
)
from agent_lifespan_tracker.persistence.repositories import KeyValueEventStore
from agent_lifespan_tracker.services.decoder import EventDecoder
from agent_lifespan_tracker.services.fetcher import LogFetcher
from agent_lifespan_tracker.services.sync import SyncMode, SyncOrchestrator

CONTRACT = "0x32659ea613ce1706abea4109f9e2d5840196c187"
TOPIC = "0x2cfe7b018315264be29a983ebbd20ba03cea5b8f692cec92ff3b44c7c23e227c"


def _orchestrator(
    chain: Any,
    store: Any,
    clock: Any,
    *,
    lookback_blocks: int = 500,
    chunk_size: int = 100,
    max_retries: int = 2,
    deadline_seconds: float | None = None,
    verify_contract: bool = True,
) -> SyncOrchestrator:
    """Build SyncOrchestrator over the fake chain with real fetcher/decoder."""
    fetcher = LogFetcher(
        chain,
        contract_address=CONTRACT,
        event_topic=TOPIC,
        chunk_size=chunk_size,
        max_retries=max_retries,
        backoff_base_seconds=1.0,
        inter_chunk_delay_seconds=0.0,
        sleep=clock.sleep,
        clock=clock,
    )
    return SyncOrchestrator(
        chain,
        fetcher,
        EventDecoder(TOPIC),
        store,
        contract_address=CONTRACT,
        lookback_blocks=lookback_blocks,
        deadline_seconds=deadline_seconds,
        verify_contract=verify_contract,
        clock=clock,
    )


async def test_bootstrap_scans_lookback_window_and_sets_checkpoint_to_head(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
    raw_log_factory: Callable[..., Any],
) -> None:
    fake_chain.logs = [
        raw_log_factory(tx=1, block_number=600),
        raw_log_factory(tx=2, block_number=950),
        raw_log_factory(tx=3, block_number=100),  # outside the window
    ]
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    result = await orchestrator.sync()

    assert result.mode is SyncMode.BOOTSTRAPPING
    assert (result.from_block, result.to_block) == (500, 1000)
    assert result.new_event_count == 2
    assert result.checkpoint == 1000
    assert result.complete is True
    assert await event_store.get_checkpoint() == 1000
    events = await event_store.get_all()
    assert [e.block_height for e in events] == [600, 950]
    assert events[0].observed_at.timestamp() == fake_chain.timestamp_of(600)


async def test_bootstrap_window_is_clamped_at_genesis(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
) -> None:
    fake_chain.head = 50
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock, lookback_blocks=500)

    result = await orchestrator.sync()

    assert result.from_block == 0
    assert result.checkpoint == 50


async def test_incremental_resumes_after_checkpoint(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
    raw_log_factory: Callable[..., Any],
) -> None:
    await event_store.set_checkpoint(900)
    fake_chain.logs = [raw_log_factory(tx=1, block_number=900), raw_log_factory(tx=2, block_number=901)]
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    result = await orchestrator.sync()

    assert result.mode is SyncMode.INCREMENTAL
    assert result.from_block == 901
    assert fake_chain.get_logs_calls[0] == (901, 1000)
    assert result.new_event_count == 1
    assert result.checkpoint == 1000


async def test_sync_when_current_is_a_no_op(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
) -> None:
    await event_store.set_checkpoint(1000)
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    result = await orchestrator.sync()

    assert result.new_event_count == 0
    assert result.checkpoint == 1000
    assert result.complete is True
    assert fake_chain.get_logs_calls == []


async def test_repeated_sync_is_idempotent(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
    raw_log_factory: Callable[..., Any],
) -> None:
    fake_chain.logs = [raw_log_factory(tx=1, block_number=700)]
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    first = await orchestrator.sync()
    second = await orchestrator.sync()

    assert first.new_event_count == 1
    assert second.new_event_count == 0
    assert len(await event_store.get_all()) == 1


async def test_failed_chunk_holds_checkpoint_before_gap(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
    raw_log_factory: Callable[..., Any],
) -> None:
    fake_chain.logs = [raw_log_factory(tx=1, block_number=550), raw_log_factory(tx=2, block_number=850)]
    fake_chain.failing_chunks[(700, 799)] = None
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    result = await orchestrator.sync()

    assert result.complete is False
    assert result.checkpoint == 699
    assert [(r.start, r.end) for r in result.failed_ranges] == [(700, 799)]
    assert [e.block_height for e in await event_store.get_all()] == [550]

    # Next cycle resumes at the gap and picks up the rest.
    fake_chain.failing_chunks.clear()
    retry = await orchestrator.sync()

    assert retry.from_block == 700
    assert retry.checkpoint == 1000
    assert [e.block_height for e in await event_store.get_all()] == [550, 850]


async def test_unreadable_block_timestamp_stops_checkpoint_before_that_block(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
    raw_log_factory: Callable[..., Any],
) -> None:
    fake_chain.logs = [
        raw_log_factory(tx=1, block_number=600),
        raw_log_factory(tx=2, block_number=800),
        raw_log_factory(tx=3, block_number=900),
    ]
    fake_chain.missing_blocks.add(800)
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    result = await orchestrator.sync()

    assert result.checkpoint == 799
    assert result.complete is False
    assert [e.block_height for e in await event_store.get_all()] == [600]


async def test_block_timestamp_resolved_once_per_block(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
    raw_log_factory: Callable[..., Any],
) -> None:
    fake_chain.logs = [
        raw_log_factory(tx=1, block_number=600, log_index=0),
        raw_log_factory(tx=2, block_number=600, log_index=1),
        raw_log_factory(tx=3, block_number=601),
    ]
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    await orchestrator.sync()

    assert fake_chain.timestamp_calls == [600, 601]


async def test_malformed_log_is_dropped_not_fatal(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
    raw_log_factory: Callable[..., Any],
) -> None:
    fake_chain.logs = [raw_log_factory(tx=1, block_number=600), raw_log_factory(tx=2, block_number=610, data="0x12")]
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    result = await orchestrator.sync()

    assert result.new_event_count == 1
    assert result.decode_failures == 1
    assert result.checkpoint == 1000


async def test_total_fetch_failure_leaves_store_untouched(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
) -> None:
    fake_chain.head = 99
    fake_chain.failing_chunks[(0, 99)] = None
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    with pytest.raises(FetchFailedError):
        await orchestrator.sync()

    assert await event_store.get_checkpoint() is None
    assert await event_store.get_all() == []


async def test_unreachable_node_propagates(fake_clock: Any, event_store: KeyValueEventStore) -> None:
    chain: Any = AsyncMock()
    chain.get_block_number = AsyncMock(side_effect=TransientFetchError("connection refused"))
    orchestrator = _orchestrator(chain, event_store, fake_clock)

    with pytest.raises(TransientFetchError):
        await orchestrator.sync()

    assert await event_store.get_checkpoint() is None


async def test_store_down_aborts_sync(fake_chain: Any, fake_clock: Any) -> None:
    store: Any = AsyncMock()
    store.get_checkpoint = AsyncMock(side_effect=StoreUnavailableError("redis down"))
    orchestrator = _orchestrator(fake_chain, store, fake_clock)

    with pytest.raises(StoreUnavailableError):
        await orchestrator.sync()

    assert fake_chain.get_logs_calls == []


async def test_unreadable_history_aborts_sync_before_checkpoint(
    fake_chain: Any,
    fake_clock: Any,
    kv_backend: Any,
    event_store: KeyValueEventStore,
    raw_log_factory: Callable[..., Any],
) -> None:
    await event_store.set_checkpoint(900)
    await kv_backend.set("life_extended_events", b'[{"agentId": ')
    fake_chain.logs = [raw_log_factory(tx=1, block_number=950)]
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    with pytest.raises(StoreCorruptError):
        await orchestrator.sync()

    assert await event_store.get_checkpoint() == 900
    assert await kv_backend.get("life_extended_events") == b'[{"agentId": '


async def test_missing_contract_code_is_configuration_error(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
) -> None:
    fake_chain.code = "0x"
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    with pytest.raises(ConfigurationError):
        await orchestrator.sync()


async def test_contract_verified_only_once(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
) -> None:
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    await orchestrator.sync()
    fake_chain.head += 10
    await orchestrator.sync()

    assert fake_chain.code_calls == 1


async def test_deadline_yields_partial_progress(
    fake_chain: Any,
    fake_clock: Any,
    event_store: KeyValueEventStore,
) -> None:
    orchestrator = _orchestrator(fake_chain, event_store, fake_clock)

    original_get_logs = fake_chain.get_logs

    async def _slow_get_logs(*args: Any, **kwargs: Any) -> Any:
        fake_clock.now += 4.0
        return await original_get_logs(*args, **kwargs)

    fake_chain.get_logs = _slow_get_logs

    result = await orchestrator.sync(deadline_seconds=10.0)

    # Chunks start at t=0, 4, 8; t=12 is past the deadline.
    assert result.timed_out is True
    assert result.complete is False
    assert result.checkpoint == 799
    assert result.to_dict()["timed_out"] is True
