"""Services: fetch, decode, sync, aggregate."""

from agent_lifespan_tracker.services.decoder import EventDecoder
from agent_lifespan_tracker.services.fetcher import FetchResult, LogFetcher
from agent_lifespan_tracker.services.stats import StatusPolicy, aggregate, summarize
from agent_lifespan_tracker.services.sync import SyncMode, SyncOrchestrator, SyncResult
from agent_lifespan_tracker.services.tracker import LifespanTracker

__all__ = [
    "EventDecoder",
    "FetchResult",
    "LifespanTracker",
    "LogFetcher",
    "StatusPolicy",
    "SyncMode",
    "SyncOrchestrator",
    "SyncResult",
    "aggregate",
    "summarize",
]
