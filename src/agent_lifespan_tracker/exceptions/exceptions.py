"""Custom exceptions for event ingestion, storage and aggregation.

Every error carries a ``category`` and a ``detail`` so callers receive one
explicit shape (see ``to_dict``) instead of an empty or ambiguous result.
"""

from __future__ import annotations

from typing import Any


class LifespanTrackerError(Exception):
    """Base exception for the lifespan tracker."""

    category: str = "internal"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Return the error as {"category": ..., "detail": ...}."""
        return {"category": self.category, "detail": self.detail}


class ConfigurationError(LifespanTrackerError):
    """Raised when a required endpoint or credential is missing or wrong."""

    category = "configuration"


class TransientFetchError(LifespanTrackerError):
    """Raised when a node request fails (timeout, HTTP error, JSON-RPC error)."""

    category = "transient_fetch"

    def __init__(
        self,
        detail: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(detail)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class RateLimitError(TransientFetchError):
    """Raised when the upstream returns HTTP 429 (Too Many Requests)."""

    def __init__(
        self,
        detail: str = "Rate limit exceeded (429)",
        *,
        url: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(detail, url=url, status_code=429)
        self.retry_after = retry_after


class FetchFailedError(LifespanTrackerError):
    """Raised when every sub-chunk of a requested block range failed."""

    category = "fetch_failed"

    def __init__(self, detail: str, *, from_block: int, to_block: int) -> None:
        super().__init__(detail)
        self.from_block = from_block
        self.to_block = to_block


class DecodeError(LifespanTrackerError):
    """Raised when a raw log does not match the LifeExtended schema. Never retried."""

    category = "decode"

    def __init__(self, detail: str, *, tx_id: str | None = None) -> None:
        super().__init__(detail)
        self.tx_id = tx_id


class StoreUnavailableError(LifespanTrackerError):
    """Raised when the persistent store cannot be reached or times out."""

    category = "store_unavailable"


class StoreConflictError(LifespanTrackerError):
    """Raised when an optimistic write keeps losing to concurrent writers."""

    category = "store_conflict"


class StoreCorruptError(LifespanTrackerError):
    """Raised when the stored history is not a readable event list."""

    category = "store_corrupt"
