# -*- coding: utf-8 -*-
"""Async HTTP client with retries and rate-limit handling."""

from __future__ import annotations

import asyncio
import random
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Dict, Optional
from structlog.contextvars import bound_contextvars

from agent_lifespan_tracker.exceptions import RateLimitError, TransientFetchError


class AsyncHttpClient:
    """Async HTTP client for the JSON-RPC node and the profile API.

    Retries transport errors, non-2xx responses and 429s with exponential
    backoff. If no session is provided, one is created and must be closed
    via aclose() or by using the client as an async context manager.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float,
        max_retries: int,
        session: Optional[aiohttp.ClientSession] = None,
        backoff_base_seconds: float = 0.25,
        backoff_max_seconds: float = 4.0,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            timeout_seconds: Total timeout of one request.
            max_retries: Default number of attempts per request.
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            backoff_base_seconds: First retry delay; doubles every attempt.
            backoff_max_seconds: Upper bound of the retry delay (before jitter).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._timeout_seconds = timeout_seconds
        self._max_retries = max(1, max_retries)
        self._session = session
        self._owns_session = session is None
        self._backoff_base = backoff_base_seconds
        self._backoff_max = backoff_max_seconds
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at backoff_max_seconds."""
        base = min(self._backoff_max, self._backoff_base * (2**attempt))
        return base + random.uniform(0.0, 0.15)

    @staticmethod
    def _retry_after(response: aiohttp.ClientResponse) -> Optional[float]:
        header = response.headers.get("Retry-After")
        if not header:
            return None
        try:
            return float(header)
        except ValueError:
            return None

    async def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        max_retries: Optional[int] = None,
    ) -> Any:
        """Perform a GET request and return parsed JSON. See _request."""
        return await self._request("GET", url, params=params or {}, max_retries=max_retries)

    async def post(
        self,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        max_retries: Optional[int] = None,
    ) -> Any:
        """Perform a POST request with a JSON body and return parsed JSON. See _request."""
        return await self._request("POST", url, json=json or {}, max_retries=max_retries)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        max_retries: Optional[int] = None,
    ) -> Any:
        """Send the request, retrying on failure and on 429.

        Args:
            method: "GET" or "POST".
            url: Full URL to request.
            params: Query parameters (GET).
            json: JSON body (POST).
            max_retries: Attempts for this call (defaults to the client setting).

        Returns:
            Parsed JSON response (dict or list).

        Raises:
            RateLimitError: If the last attempt was rate limited.
            TransientFetchError: If the request fails after all attempts.
        """
        attempts = max(1, max_retries if max_retries is not None else self._max_retries)
        request_id = uuid.uuid4().hex[:12]
        event_prefix = f"http_{method.lower()}"
        last_error: Optional[Exception] = None
        last_retry_after: Optional[float] = None
        rate_limited = False

        with bound_contextvars(
            http_url=url,
            http_request_id=request_id,
            http_max_retries=attempts,
        ):
            for attempt in range(attempts):
                is_last = attempt == attempts - 1
                with bound_contextvars(http_attempt=attempt + 1):
                    try:
                        session = await self._get_session()
                        async with session.request(
                            method, url, params=params, json=json
                        ) as response:
                            if response.status == 429:
                                rate_limited = True
                                last_retry_after = self._retry_after(response)
                                self._logger.warning(
                                    f"{event_prefix}_rate_limited",
                                    http_status_code=429,
                                    http_retry_after_seconds=last_retry_after,
                                )
                                if not is_last:
                                    if last_retry_after is not None and last_retry_after > 0:
                                        await asyncio.sleep(last_retry_after)
                                    else:
                                        await asyncio.sleep(self._backoff_delay(attempt))
                                continue

                            rate_limited = False
                            response.raise_for_status()
                            return await response.json(content_type=None)
                    except aiohttp.ClientResponseError as e:
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                            http_status_code=getattr(e, "status", None),
                        )
                    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                        # ValueError covers undecodable JSON bodies
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                    if not is_last:
                        await asyncio.sleep(self._backoff_delay(attempt))

            if rate_limited:
                self._logger.warning(f"{event_prefix}_failed", http_status_code=429, http_attempts=attempts)
                raise RateLimitError(
                    f"{method} rate limited after {attempts} attempts: {url}",
                    url=url,
                    retry_after=last_retry_after,
                )

            status_code = (
                getattr(last_error, "status", None)
                if isinstance(last_error, aiohttp.ClientResponseError)
                else None
            )
            self._logger.warning(
                f"{event_prefix}_failed",
                http_status_code=status_code,
                http_attempts=attempts,
                error_type=type(last_error).__name__ if last_error else None,
                error_message=str(last_error) if last_error else None,
            )
            raise TransientFetchError(
                f"{method} failed after {attempts} attempts: {url}",
                url=url,
                status_code=status_code,
                cause=last_error,
            ) from last_error
