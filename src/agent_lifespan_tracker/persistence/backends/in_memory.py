# -*- coding: utf-8 -*-
"""In-memory key-value backend (tests and single-process runs)."""

from __future__ import annotations

import asyncio

from agent_lifespan_tracker.persistence.backends.interfaces import IKeyValueBackend


class InMemoryKeyValueBackend(IKeyValueBackend):
    """In-memory implementation of IKeyValueBackend."""

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._data: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        """Return the stored value or None."""
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        """Store value under key."""
        async with self._lock:
            self._data[key] = bytes(value)

    async def delete(self, *keys: str) -> None:
        """Remove keys; absent keys are ignored."""
        async with self._lock:
            for key in keys:
                self._data.pop(key, None)

    async def compare_and_set(self, key: str, expected: bytes | None, value: bytes) -> bool:
        """Atomic under the backend lock."""
        async with self._lock:
            if self._data.get(key) != expected:
                return False
            self._data[key] = bytes(value)
            return True
