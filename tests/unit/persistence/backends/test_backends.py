# -*- coding: utf-8 -*-
"""Unit tests for the key-value backends."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from agent_lifespan_tracker.exceptions import StoreUnavailableError
from agent_lifespan_tracker.persistence.backends import InMemoryKeyValueBackend, RedisKeyValueBackend


async def test_in_memory_get_set_delete() -> None:
    backend = InMemoryKeyValueBackend()

    assert await backend.get("k") is None
    await backend.set("k", b"v")
    assert await backend.get("k") == b"v"
    await backend.delete("k", "absent")
    assert await backend.get("k") is None


async def test_in_memory_compare_and_set() -> None:
    backend = InMemoryKeyValueBackend()

    assert await backend.compare_and_set("k", None, b"1") is True
    assert await backend.compare_and_set("k", None, b"2") is False
    assert await backend.compare_and_set("k", b"1", b"2") is True
    assert await backend.get("k") == b"2"


def _redis(client: Any) -> RedisKeyValueBackend:
    return RedisKeyValueBackend("redis://localhost:6379/0", timeout_seconds=1.0, client=client)


async def test_redis_get_returns_bytes() -> None:
    client: Any = SimpleNamespace(get=AsyncMock(return_value=b"payload"))

    assert await _redis(client).get("k") == b"payload"
    client.get.assert_awaited_once_with("k")


async def test_redis_connection_error_maps_to_store_unavailable() -> None:
    client: Any = SimpleNamespace(
        get=AsyncMock(side_effect=RedisConnectionError("refused")),
        set=AsyncMock(side_effect=ResponseError("READONLY")),
    )
    backend = _redis(client)

    with pytest.raises(StoreUnavailableError):
        await backend.get("k")
    with pytest.raises(StoreUnavailableError):
        await backend.set("k", b"v")


async def test_redis_delete_without_keys_is_noop() -> None:
    client: Any = SimpleNamespace(delete=AsyncMock())

    await _redis(client).delete()

    client.delete.assert_not_awaited()


async def test_redis_aclose_leaves_injected_client_open() -> None:
    client: Any = SimpleNamespace(aclose=AsyncMock())

    await _redis(client).aclose()

    client.aclose.assert_not_awaited()
