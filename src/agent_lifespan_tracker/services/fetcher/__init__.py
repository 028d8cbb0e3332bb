"""Chunked log fetching."""

from agent_lifespan_tracker.services.fetcher.log_fetcher import (
    BlockRange,
    FetchResult,
    LogFetcher,
    split_range,
)

__all__ = ["BlockRange", "FetchResult", "LogFetcher", "split_range"]
