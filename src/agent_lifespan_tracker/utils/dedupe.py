"""Deduplication key for cached events."""

from __future__ import annotations

from typing import Any


def tx_key(raw: dict[str, Any]) -> str | None:
    """Return the normalized transaction id of a raw log or stored record.

    Prefers transactionHash, then txId, then hash. Returns None when no usable
    value is present so the caller can drop the entry instead of colliding on "".
    """
    for field in ("transactionHash", "txId", "hash"):
        value = raw.get(field)
        if isinstance(value, str) and value.strip():
            return normalize_tx_id(value)
    return None


def normalize_tx_id(value: str) -> str:
    """Lowercase, stripped, 0x-prefixed form of a transaction hash."""
    s = value.strip().lower()
    if not s.startswith("0x"):
        s = "0x" + s
    return s
