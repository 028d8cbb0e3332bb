# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from eth_abi import encode as abi_encode

from agent_lifespan_tracker.clients.rpc_client import RawLogSchema
from agent_lifespan_tracker.exceptions import TransientFetchError
from agent_lifespan_tracker.models.domain_event import DomainEvent
from agent_lifespan_tracker.persistence.backends import InMemoryKeyValueBackend
from agent_lifespan_tracker.persistence.repositories import KeyValueEventStore
from agent_lifespan_tracker.services.decoder import LIFE_EXTENDED_TYPES

CONTRACT = "0x32659ea613ce1706abea4109f9e2d5840196c187"
TOPIC = "0x2cfe7b018315264be29a983ebbd20ba03cea5b8f692cec92ff3b44c7c23e227c"
TOKEN = 10**18


def tx_hash(n: int) -> str:
    """Deterministic 32-byte transaction hash."""
    return "0x" + f"{n:064x}"


@pytest.fixture
def now_utc() -> datetime:
    """Stable UTC timestamp for deterministic assertions."""
    return datetime(2026, 2, 13, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def event_factory(now_utc: datetime) -> Callable[..., DomainEvent]:
    """Build DomainEvent with sensible defaults and easy overrides.

    ``tx`` is an int shortcut for tx_id; ``expires_in`` a timedelta from now_utc.
    """

    def _build(**overrides: Any) -> DomainEvent:
        tx = overrides.pop("tx", 1)
        expires_in = overrides.pop("expires_in", timedelta(days=30))
        return DomainEvent.create(
            agent_id=overrides.pop("agent_id", "agent-a"),
            payment_amount=overrides.pop("payment_amount", 1_000_000),
            burned_amount=overrides.pop("burned_amount", TOKEN),
            new_expiry_time=overrides.pop(
                "new_expiry_time", int((now_utc + expires_in).timestamp())
            ),
            paid_with_stable_asset=overrides.pop("paid_with_stable_asset", True),
            tx_id=overrides.pop("tx_id", tx_hash(tx)),
            block_height=overrides.pop("block_height", 100),
            observed_at=overrides.pop("observed_at", now_utc - timedelta(days=1)),
        )

    return _build


@pytest.fixture
def raw_log_factory() -> Callable[..., RawLogSchema]:
    """Build an eth_getLogs item carrying an ABI-encoded LifeExtended payload."""

    def _build(**overrides: Any) -> RawLogSchema:
        data = abi_encode(
            list(LIFE_EXTENDED_TYPES),
            [
                overrides.pop("agent_id", "agent-a"),
                overrides.pop("payment_amount", 1_000_000),
                overrides.pop("burned_amount", TOKEN),
                overrides.pop("new_expiry_time", 1_800_000_000),
                overrides.pop("paid_with_stable_asset", True),
            ],
        )
        log: dict[str, Any] = {
            "address": CONTRACT,
            "topics": overrides.pop("topics", [TOPIC]),
            "data": "0x" + data.hex(),
            "blockNumber": hex(overrides.pop("block_number", 100)),
            "blockHash": "0x" + "ab" * 32,
            "transactionHash": overrides.pop("transaction_hash", tx_hash(overrides.pop("tx", 1))),
            "transactionIndex": "0x0",
            "logIndex": hex(overrides.pop("log_index", 0)),
            "removed": overrides.pop("removed", False),
        }
        log.update(overrides)
        return log  # type: ignore[return-value]

    return _build


class FakeChain:
    """In-memory stand-in for RpcClient.

    Logs are filtered by block range. ``failing_chunks`` holds (from, to) pairs
    whose get_logs raises TransientFetchError ``fail_times`` times (or always
    when fail_times is None); ``missing_blocks`` have no readable timestamp.
    """

    def __init__(self, head: int = 1_000, *, block_time: int = 2, genesis_ts: int = 1_770_000_000) -> None:
        self.head = head
        self.block_time = block_time
        self.genesis_ts = genesis_ts
        self.logs: list[RawLogSchema] = []
        self.code = "0x6080604052"
        self.failing_chunks: dict[tuple[int, int], int | None] = {}
        self.missing_blocks: set[int] = set()
        self.get_logs_calls: list[tuple[int, int]] = []
        self.timestamp_calls: list[int] = []
        self.code_calls = 0

    def timestamp_of(self, block: int) -> int:
        return self.genesis_ts + block * self.block_time

    async def get_block_number(self) -> int:
        return self.head

    async def get_block_timestamp(self, number: int) -> int:
        self.timestamp_calls.append(number)
        if number in self.missing_blocks:
            raise TransientFetchError(f"Block {number} not available")
        return self.timestamp_of(number)

    async def get_logs(
        self,
        address: str,
        topic: str,
        from_block: int,
        to_block: int,
        *,
        max_retries: int | None = None,
    ) -> list[RawLogSchema]:
        self.get_logs_calls.append((from_block, to_block))
        key = (from_block, to_block)
        if key in self.failing_chunks:
            remaining = self.failing_chunks[key]
            if remaining is None:
                raise TransientFetchError(f"getLogs {from_block}..{to_block} failed")
            if remaining > 0:
                self.failing_chunks[key] = remaining - 1
                raise TransientFetchError(f"getLogs {from_block}..{to_block} failed")
        return [
            log
            for log in self.logs
            if from_block <= int(str(log["blockNumber"]), 16) <= to_block
        ]

    async def get_code(self, address: str) -> str:
        self.code_calls += 1
        return self.code


@pytest.fixture
def fake_chain() -> FakeChain:
    """Fresh fake chain per test (head 1000)."""
    return FakeChain()


class FakeClock:
    """Manual monotonic clock; ``sleep`` advances it instead of waiting."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv_backend() -> InMemoryKeyValueBackend:
    """Fresh in-memory key-value backend per test."""
    return InMemoryKeyValueBackend()


@pytest.fixture
def event_store(kv_backend: InMemoryKeyValueBackend) -> KeyValueEventStore:
    """Event store over the in-memory backend."""
    return KeyValueEventStore(kv_backend)
