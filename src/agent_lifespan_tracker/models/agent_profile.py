"""AgentProfile: display data from the external profile service."""

from __future__ import annotations

from dataclasses import dataclass, field


def short_agent_label(agent_id: str) -> str:
    """Return a placeholder name, e.g. 'Agent 0bd257...8356'."""
    if len(agent_id) <= 10:
        return f"Agent {agent_id}"
    return f"Agent {agent_id[:6]}...{agent_id[-4:]}"


@dataclass(frozen=True, slots=True)
class AgentProfile:
    """Display name, avatar and social links of an agent."""

    display_name: str
    avatar_url: str | None = None
    social_links: dict[str, str] = field(default_factory=dict)

    @classmethod
    def placeholder(cls, agent_id: str) -> AgentProfile:
        """Profile used when the lookup is disabled, failing, or has no entry."""
        return cls(display_name=short_agent_label(agent_id))
