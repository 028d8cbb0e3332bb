"""Execution-layer JSON-RPC client."""

from agent_lifespan_tracker.clients.rpc_client.rpc_client import RpcClient, parse_quantity
from agent_lifespan_tracker.clients.rpc_client.schema import BlockSchema, RawLogSchema

__all__ = ["BlockSchema", "RawLogSchema", "RpcClient", "parse_quantity"]
