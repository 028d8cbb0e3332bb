"""JSON-RPC response types (execution-layer node, camelCase keys as returned)."""

from __future__ import annotations

from typing import TypedDict


class RawLogSchema(TypedDict, total=False):
    """eth_getLogs item. Quantities are 0x-hex strings."""

    address: str
    topics: list[str]
    data: str
    blockNumber: str
    blockHash: str
    transactionHash: str
    transactionIndex: str
    logIndex: str
    removed: bool


class BlockSchema(TypedDict, total=False):
    """eth_getBlockByNumber result (header fields only, no transactions)."""

    number: str
    hash: str
    timestamp: str
