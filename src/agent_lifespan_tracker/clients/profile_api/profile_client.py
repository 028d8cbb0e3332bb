# -*- coding: utf-8 -*-
"""Agent profile API client (agent_id -> display name, avatar, socials).

Optional collaborator: when disabled or failing, every requested agent gets
a placeholder profile so callers never block on it.
"""

from __future__ import annotations

import structlog
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, cast
from cachetools import TTLCache
from structlog.contextvars import bound_contextvars

from agent_lifespan_tracker.exceptions import TransientFetchError
from agent_lifespan_tracker.models.agent_profile import AgentProfile, short_agent_label

if TYPE_CHECKING:
    from agent_lifespan_tracker.clients.http import AsyncHttpClient

_TWITTER_APPS = frozenset({"x", "twitter"})


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def profile_from_response(item: Dict[str, Any]) -> Optional[tuple[str, AgentProfile]]:
    """Map one profile API item to (agent_id, AgentProfile). None if it has no agentId."""
    agent_id = item.get("agentId")
    if not isinstance(agent_id, str) or not agent_id:
        return None

    connected = item.get("connectedWith")
    connections = [c for c in connected if isinstance(c, dict)] if isinstance(connected, list) else []
    twitter_conn = next(
        (c for c in connections if str(c.get("app", "")).lower() in _TWITTER_APPS),
        None,
    )
    twitter_client = _as_dict(item.get("twitterClient"))
    username = twitter_client.get("username") or (twitter_conn or {}).get("username")

    avatar = (
        item.get("imageUrl")
        or (twitter_conn or {}).get("imageUrl")
        or twitter_client.get("profileImageUrl")
        or (f"https://unavatar.io/twitter/{username}" if username else None)
    )

    socials: Dict[str, str] = {}
    if username:
        socials["x"] = f"https://x.com/{username}"
    farcaster = _as_dict(item.get("socials")).get("farcaster")
    if farcaster:
        socials["farcaster"] = str(farcaster)

    name = item.get("name")
    return agent_id, AgentProfile(
        display_name=name if isinstance(name, str) and name else short_agent_label(agent_id),
        avatar_url=avatar,
        social_links=socials,
    )


class AgentProfileClient:
    """Looks up agent profiles and caches them for ``cache_ttl_seconds``."""

    def __init__(
        self,
        http_client: "AsyncHttpClient",
        *,
        api_url: Optional[str],
        enabled: bool = True,
        cache_ttl_seconds: float = 300.0,
        cache_maxsize: int = 2048,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Async HTTP client.
            api_url: Endpoint returning the list of all agent profiles.
            enabled: If False (or api_url is empty) only placeholders are returned.
            cache_ttl_seconds: How long a fetched profile stays valid.
            cache_maxsize: Maximum number of cached profiles.
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._api_url = (api_url or "").strip()
        self._enabled = enabled and bool(self._api_url)
        self._cache: TTLCache[str, AgentProfile] = TTLCache(
            maxsize=max(1, cache_maxsize), ttl=cache_ttl_seconds
        )
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def get_profiles(self, agent_ids: Iterable[str]) -> Dict[str, AgentProfile]:
        """Return a profile for every agent id (placeholder when unknown).

        Agents the API does not list are cached as placeholders for the same
        TTL; a failed lookup caches nothing so the next call retries.
        """
        wanted = list(dict.fromkeys(agent_ids))
        missing = [a for a in wanted if a not in self._cache]
        if missing and self._enabled:
            with bound_contextvars(
                profile_requested_count=len(wanted),
                profile_missing_count=len(missing),
            ):
                if await self._refresh():
                    for agent_id in missing:
                        if agent_id not in self._cache:
                            self._cache[agent_id] = AgentProfile.placeholder(agent_id)

        return {a: self._cache.get(a) or AgentProfile.placeholder(a) for a in wanted}

    async def _refresh(self) -> bool:
        try:
            data = await self._http.get(self._api_url)
        except TransientFetchError as e:
            self._logger.warning(
                "profile_api_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False

        items = self.__as_list_of_dicts(data)
        resolved = 0
        for item in items:
            mapped = profile_from_response(item)
            if mapped is None:
                continue
            agent_id, profile = mapped
            self._cache[agent_id] = profile
            resolved += 1
        self._logger.debug("profile_api_refreshed", profile_resolved_count=resolved)
        return True

    @staticmethod
    def __as_list_of_dicts(data: Any) -> List[Dict[str, Any]]:
        if isinstance(data, list):
            return [cast(Dict[str, Any], x) for x in data if isinstance(x, dict)]
        if isinstance(data, dict):
            for key in ("agents", "data", "results"):
                inner = data.get(key)
                if isinstance(inner, list):
                    return [cast(Dict[str, Any], x) for x in inner if isinstance(x, dict)]
        return []
