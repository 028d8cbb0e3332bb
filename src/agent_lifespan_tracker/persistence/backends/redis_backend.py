# -*- coding: utf-8 -*-
"""Redis key-value backend with connection pooling, retries and WATCH-based CAS."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

import redis.asyncio as redis
import structlog
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, WatchError
from redis.exceptions import TimeoutError as RedisTimeoutError

from agent_lifespan_tracker.exceptions import StoreUnavailableError
from agent_lifespan_tracker.persistence.backends.interfaces import IKeyValueBackend
from agent_lifespan_tracker.utils.validation import mask_url

T = TypeVar("T")


class RedisKeyValueBackend(IKeyValueBackend):
    """IKeyValueBackend on Redis.

    The client is built per instance (no module-level singleton) so tests and
    multiple stores never share hidden connection state.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 3.0,
        max_retries: int = 2,
        client: Optional[redis.Redis] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the backend.

        Args:
            url: redis:// or rediss:// URL.
            timeout_seconds: Socket and per-operation timeout.
            max_retries: Redis-level retries on connection errors and timeouts.
            client: Optional pre-built client (owned by the caller).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._timeout = timeout_seconds
        self._owns_client = client is None
        self._logger = get_logger(logger_name or self.__class__.__name__)
        if client is None:
            client = redis.from_url(
                url,
                decode_responses=False,
                retry=Retry(ExponentialBackoff(), retries=max_retries),
                retry_on_timeout=True,
                socket_connect_timeout=timeout_seconds,
                socket_timeout=timeout_seconds,
                health_check_interval=30,
            )
            self._logger.debug("redis_client_created", redis_url=mask_url(url))
        self._client = client

    async def _guard(self, operation: str, make: Callable[[], Awaitable[T]]) -> T:
        """Run one Redis operation with a timeout, mapping failures to StoreUnavailableError."""
        try:
            return await asyncio.wait_for(make(), timeout=self._timeout)
        except (RedisConnectionError, RedisTimeoutError, asyncio.TimeoutError) as e:
            self._logger.warning(
                "redis_unavailable",
                redis_operation=operation,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise StoreUnavailableError(f"Redis {operation} failed: {type(e).__name__}: {e}") from e
        except WatchError:
            raise
        except RedisError as e:
            self._logger.warning(
                "redis_error",
                redis_operation=operation,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise StoreUnavailableError(f"Redis {operation} error: {e}") from e

    async def get(self, key: str) -> bytes | None:
        """GET key."""
        value = await self._guard("get", lambda: self._client.get(key))
        return bytes(value) if value is not None else None

    async def set(self, key: str, value: bytes) -> None:
        """SET key value."""
        await self._guard("set", lambda: self._client.set(key, value))

    async def delete(self, *keys: str) -> None:
        """DEL keys."""
        if keys:
            await self._guard("delete", lambda: self._client.delete(*keys))

    async def compare_and_set(self, key: str, expected: bytes | None, value: bytes) -> bool:
        """WATCH key, compare, then MULTI/SET/EXEC. False on mismatch or WatchError."""

        async def _cas() -> bool:
            async with self._client.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                current = await pipe.get(key)
                if current != expected:
                    await pipe.unwatch()
                    return False
                pipe.multi()
                pipe.set(key, value)
                await pipe.execute()
                return True

        try:
            return await self._guard("compare_and_set", _cas)
        except WatchError:
            self._logger.debug("redis_cas_conflict", redis_key=key)
            return False

    async def aclose(self) -> None:
        """Close the connection pool if this backend created it."""
        if self._owns_client:
            await self._client.aclose()
