"""Abstract interface for the persistent key-value backend (Redis, in-memory, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IKeyValueBackend(ABC):
    """Byte-oriented key-value store with an atomic compare-and-set.

    Implementations raise StoreUnavailableError when the backend cannot be reached.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored value or None if the key is absent."""
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Unconditionally store value under key."""
        ...

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        """Remove keys. Absent keys are ignored."""
        ...

    @abstractmethod
    async def compare_and_set(self, key: str, expected: bytes | None, value: bytes) -> bool:
        """Store value only if the current value equals expected (None = absent).

        Returns:
            True if the write happened, False if another writer changed the key.
        """
        ...

    async def aclose(self) -> None:
        """Release connections. Default is a no-op."""
        return None
