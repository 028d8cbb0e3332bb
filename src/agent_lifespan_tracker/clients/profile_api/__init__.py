"""Agent profile API client."""

from agent_lifespan_tracker.clients.profile_api.profile_client import (
    AgentProfileClient,
    profile_from_response,
)

__all__ = ["AgentProfileClient", "profile_from_response"]
