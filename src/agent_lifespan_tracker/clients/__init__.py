"""HTTP, JSON-RPC and profile API clients."""

from agent_lifespan_tracker.clients.http import AsyncHttpClient
from agent_lifespan_tracker.clients.profile_api import AgentProfileClient
from agent_lifespan_tracker.clients.rpc_client import RawLogSchema, RpcClient

__all__ = [
    "AgentProfileClient",
    "AsyncHttpClient",
    "RawLogSchema",
    "RpcClient",
]
