# -*- coding: utf-8 -*-
"""LogFetcher: chunked eth_getLogs over an inclusive block range.

Each chunk is retried with exponential backoff; a chunk that exhausts its
retries is skipped and reported, never counted as empty. The result says
up to which height the range was confirmed contiguously, so the caller
cannot advance its checkpoint over a gap.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.contextvars import bound_contextvars

from agent_lifespan_tracker.exceptions import FetchFailedError, RateLimitError, TransientFetchError

if TYPE_CHECKING:
    from agent_lifespan_tracker.clients.rpc_client import RawLogSchema, RpcClient


class _DeadlineReached(Exception):
    """Internal: stop scanning, the sync deadline leaves no time for another request."""


@dataclass(frozen=True)
class BlockRange:
    """Inclusive block range."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start + 1


@dataclass
class FetchResult:
    """Outcome of LogFetcher.fetch."""

    from_block: int
    to_block: int
    logs: list["RawLogSchema"] = field(default_factory=list)
    """Logs of every confirmed chunk (including chunks after a gap)."""
    confirmed_through: int = -1
    """Highest height confirmed contiguously from from_block (from_block - 1 if none)."""
    failed_ranges: list[BlockRange] = field(default_factory=list)
    """Chunks that exhausted their retries."""
    timed_out: bool = False
    """True if the deadline stopped the scan before to_block."""

    @property
    def is_complete(self) -> bool:
        """True only when the whole requested range was confirmed."""
        return self.confirmed_through >= self.to_block


def split_range(from_block: int, to_block: int, chunk_size: int) -> list[BlockRange]:
    """Split [from_block, to_block] into consecutive inclusive chunks of chunk_size blocks."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    chunks: list[BlockRange] = []
    start = from_block
    while start <= to_block:
        end = min(start + chunk_size - 1, to_block)
        chunks.append(BlockRange(start, end))
        start = end + 1
    return chunks


class LogFetcher:
    """Fetches raw LifeExtended logs for a block range. Pure w.r.t. the store."""

    def __init__(
        self,
        rpc_client: "RpcClient",
        *,
        contract_address: str,
        event_topic: str,
        chunk_size: int = 2880,
        max_retries: int = 5,
        backoff_base_seconds: float = 2.0,
        backoff_max_seconds: float = 30.0,
        inter_chunk_delay_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            rpc_client: JSON-RPC client (injected).
            contract_address: Contract whose logs are fetched.
            event_topic: topic0 filter.
            chunk_size: Blocks per request.
            max_retries: Attempts per chunk before it is skipped.
            backoff_base_seconds: Delay before the first retry; doubles each attempt.
            backoff_max_seconds: Cap on the retry delay.
            inter_chunk_delay_seconds: Pause after a successful chunk (rate limits).
            sleep: Awaitable sleep (injected for tests).
            clock: Monotonic clock used for deadlines (injected for tests).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._rpc = rpc_client
        self._address = contract_address
        self._topic = event_topic
        self._chunk_size = chunk_size
        self._max_retries = max(1, max_retries)
        self._backoff_base = backoff_base_seconds
        self._backoff_max = backoff_max_seconds
        self._inter_chunk_delay = inter_chunk_delay_seconds
        self._sleep = sleep
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def backoff_delay(self, attempt: int) -> float:
        """base * 2^attempt, capped. attempt is 0 for the first retry."""
        return min(self._backoff_max, self._backoff_base * (2**attempt))

    def _expired(self, deadline: Optional[float]) -> bool:
        return deadline is not None and self._clock() >= deadline

    async def fetch(
        self,
        from_block: int,
        to_block: int,
        *,
        deadline: Optional[float] = None,
    ) -> FetchResult:
        """Fetch all matching logs in [from_block, to_block].

        Args:
            from_block: First block (inclusive).
            to_block: Last block (inclusive).
            deadline: Absolute time on ``clock``; no new request is issued after it.

        Returns:
            FetchResult with logs, confirmed_through, failed_ranges and timed_out.

        Raises:
            ValueError: If the range is empty or negative.
            FetchFailedError: If every attempted chunk failed.
        """
        if from_block < 0 or to_block < from_block:
            raise ValueError(f"invalid block range {from_block}..{to_block}")

        chunks = split_range(from_block, to_block, self._chunk_size)
        result = FetchResult(from_block=from_block, to_block=to_block, confirmed_through=from_block - 1)
        contiguous = True
        succeeded = 0

        self._logger.info(
            "log_fetcher_started",
            fetch_from_block=from_block,
            fetch_to_block=to_block,
            fetch_chunk_count=len(chunks),
        )

        for index, chunk in enumerate(chunks):
            if self._expired(deadline):
                result.timed_out = True
                self._logger.warning(
                    "log_fetcher_deadline_reached",
                    fetch_next_block=chunk.start,
                    fetch_confirmed_through=result.confirmed_through,
                )
                break

            try:
                with bound_contextvars(chunk_from_block=chunk.start, chunk_to_block=chunk.end):
                    logs = await self._fetch_chunk(chunk, deadline)
            except _DeadlineReached:
                result.timed_out = True
                break

            if logs is None:
                result.failed_ranges.append(chunk)
                contiguous = False
                continue

            succeeded += 1
            result.logs.extend(logs)
            if contiguous:
                result.confirmed_through = chunk.end

            if index < len(chunks) - 1 and self._inter_chunk_delay > 0:
                await self._sleep(self._inter_chunk_delay)

        if succeeded == 0 and result.failed_ranges and not result.timed_out:
            self._logger.error(
                "log_fetcher_all_chunks_failed",
                fetch_from_block=from_block,
                fetch_to_block=to_block,
                fetch_failed_chunk_count=len(result.failed_ranges),
            )
            raise FetchFailedError(
                f"all {len(result.failed_ranges)} chunks of {from_block}..{to_block} failed",
                from_block=from_block,
                to_block=to_block,
            )

        self._logger.info(
            "log_fetcher_finished",
            fetch_log_count=len(result.logs),
            fetch_confirmed_through=result.confirmed_through,
            fetch_failed_chunk_count=len(result.failed_ranges),
            fetch_timed_out=result.timed_out,
        )
        return result

    async def _fetch_chunk(self, chunk: BlockRange, deadline: Optional[float]) -> Optional[list["RawLogSchema"]]:
        """Return the chunk's logs, or None if it exhausted its retries.

        Raises:
            _DeadlineReached: If the next retry would start after the deadline.
        """
        for attempt in range(self._max_retries):
            try:
                logs = await self._rpc.get_logs(
                    self._address,
                    self._topic,
                    chunk.start,
                    chunk.end,
                    max_retries=1,
                )
                self._logger.debug("log_fetcher_chunk_fetched", chunk_log_count=len(logs), chunk_attempt=attempt + 1)
                return logs
            except TransientFetchError as e:
                is_last = attempt == self._max_retries - 1
                self._logger.warning(
                    "log_fetcher_chunk_retry" if not is_last else "log_fetcher_chunk_failed",
                    chunk_attempt=attempt + 1,
                    chunk_max_attempts=self._max_retries,
                    error_type=type(e).__name__,
                    error_message=e.detail,
                )
                if is_last:
                    break
                delay = self.backoff_delay(attempt)
                if isinstance(e, RateLimitError) and e.retry_after:
                    delay = max(delay, e.retry_after)
                if deadline is not None and self._clock() + delay >= deadline:
                    self._logger.warning("log_fetcher_chunk_abandoned_for_deadline", chunk_attempt=attempt + 1)
                    raise _DeadlineReached()
                await self._sleep(delay)
        return None
