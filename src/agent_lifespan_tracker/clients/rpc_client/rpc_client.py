"""Execution-layer JSON-RPC client (block number, blocks, logs, code)."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, cast

import structlog

from agent_lifespan_tracker.clients.rpc_client.schema import BlockSchema, RawLogSchema
from agent_lifespan_tracker.exceptions import TransientFetchError

if TYPE_CHECKING:
    from agent_lifespan_tracker.clients.http import AsyncHttpClient


def _normalize_address(addr: str) -> str:
    """Return lowercase 0x-prefixed address."""
    s = (addr or "").strip().lower()
    if not s.startswith("0x"):
        s = "0x" + s
    return s


def parse_quantity(value: Any) -> int:
    """Parse a JSON-RPC quantity (0x-hex string or int).

    Raises:
        ValueError: If value is not a quantity.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.startswith(("0x", "0X")):
        return int(value, 16)
    raise ValueError(f"Not a quantity: {value!r}")


class RpcClient:
    """Client for the node's JSON-RPC API over AsyncHttpClient."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        rpc_url: str,
        *,
        max_retries: int = 3,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the RPC client.

        Args:
            http_client: HTTP client for POST requests (JSON-RPC).
            rpc_url: Node endpoint.
            max_retries: Attempts for calls that do not pass their own count.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._rpc_url = rpc_url.rstrip("/")
        self._max_retries = max_retries
        self._ids = itertools.count(1)
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def call(self, method: str, params: list[Any], *, max_retries: int | None = None) -> Any:
        """Perform one JSON-RPC call and return its result.

        Raises:
            TransientFetchError: On transport failure or a JSON-RPC error object.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = await self._http.post(
            self._rpc_url,
            json=payload,
            max_retries=max_retries if max_retries is not None else self._max_retries,
        )
        if not isinstance(response, dict):
            raise TransientFetchError(
                f"Unexpected RPC response type for {method}: {type(response).__name__}",
                url=self._rpc_url,
            )
        resp_dict = cast(dict[str, Any], response)
        if "error" in resp_dict and resp_dict["error"] is not None:
            err = resp_dict["error"]
            if isinstance(err, dict):
                err_d = cast(dict[str, Any], err)
                msg = str(err_d.get("message", err_d))
            else:
                msg = str(err)
            raise TransientFetchError(f"RPC error in {method}: {msg}", url=self._rpc_url)
        return resp_dict.get("result")

    async def get_block_number(self) -> int:
        """Return the current head block height."""
        result = await self.call("eth_blockNumber", [])
        try:
            return parse_quantity(result)
        except ValueError as e:
            raise TransientFetchError(f"Invalid eth_blockNumber result: {result!r}", url=self._rpc_url) from e

    async def get_block_timestamp(self, number: int) -> int:
        """Return the Unix timestamp (seconds) of block ``number``.

        Raises:
            TransientFetchError: If the node does not know the block yet or fails.
        """
        result = await self.call("eth_getBlockByNumber", [hex(number), False])
        if not isinstance(result, dict):
            raise TransientFetchError(f"Block {number} not available", url=self._rpc_url)
        block = cast(BlockSchema, result)
        try:
            return parse_quantity(block.get("timestamp"))
        except ValueError as e:
            raise TransientFetchError(f"Block {number} has no valid timestamp", url=self._rpc_url) from e

    async def get_logs(
        self,
        address: str,
        topic: str,
        from_block: int,
        to_block: int,
        *,
        max_retries: int | None = None,
    ) -> list[RawLogSchema]:
        """Return logs of ``address`` with topic0 ``topic`` in [from_block, to_block]."""
        params = {
            "address": _normalize_address(address),
            "topics": [topic.lower()],
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block),
        }
        result = await self.call("eth_getLogs", [params], max_retries=max_retries)
        if result is None:
            return []
        if not isinstance(result, list):
            raise TransientFetchError(
                f"Unexpected eth_getLogs result type: {type(result).__name__}",
                url=self._rpc_url,
            )
        return cast(list[RawLogSchema], result)

    async def get_code(self, address: str) -> str:
        """Return the deployed bytecode at ``address`` ("0x" if none)."""
        result = await self.call("eth_getCode", [_normalize_address(address), "latest"])
        return str(result) if result else "0x"
