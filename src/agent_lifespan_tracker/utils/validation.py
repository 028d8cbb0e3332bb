"""Validation helpers for addresses, hashes and connection URLs."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit


def is_hex_address(addr: Any) -> bool:
    """Return True if addr is a valid 0x contract/wallet address (42 chars)."""
    return _is_hex_of_length(addr, 40)


def is_topic(x: Any) -> bool:
    """Return True if x is a 32-byte 0x topic / transaction hash (66 chars)."""
    return _is_hex_of_length(x, 64)


def _is_hex_of_length(x: Any, n_hex: int) -> bool:
    if not isinstance(x, str):
        return False
    s = x.strip()
    if len(s) != n_hex + 2 or not s.startswith("0x"):
        return False
    try:
        int(s[2:], 16)
        return True
    except ValueError:
        return False


def mask_address(addr: str | None) -> str:
    """Return a masked address or hash for logging (e.g. 0x1234...abcd)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"


def mask_url(url: str | None) -> str:
    """Return the URL without credentials (scheme://host:port/path)."""
    if not url:
        return "***"
    parts = urlsplit(url)
    host = parts.hostname or ""
    port = f":{parts.port}" if parts.port else ""
    return f"{parts.scheme}://{host}{port}{parts.path}"
