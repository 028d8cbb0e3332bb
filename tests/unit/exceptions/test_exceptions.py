# -*- coding: utf-8 -*-
"""Unit tests for the error hierarchy."""

from __future__ import annotations

from agent_lifespan_tracker.exceptions import (
    DecodeError,
    LifespanTrackerError,
    RateLimitError,
    StoreConflictError,
    StoreCorruptError,
    StoreUnavailableError,
    TransientFetchError,
)


def test_every_error_has_category_and_detail() -> None:
    errors = [
        TransientFetchError("timeout", url="https://node"),
        RateLimitError(retry_after=3.0),
        DecodeError("bad data", tx_id="0xabc"),
        StoreUnavailableError("redis down"),
        StoreConflictError("lost race"),
        StoreCorruptError("not json"),
    ]

    assert [e.to_dict()["category"] for e in errors] == [
        "transient_fetch",
        "transient_fetch",
        "decode",
        "store_unavailable",
        "store_conflict",
        "store_corrupt",
    ]
    assert all(isinstance(e, LifespanTrackerError) for e in errors)


def test_rate_limit_is_transient_with_status() -> None:
    err = RateLimitError(retry_after=1.5)

    assert isinstance(err, TransientFetchError)
    assert err.status_code == 429
    assert err.retry_after == 1.5
    assert err.to_dict() == {"category": "transient_fetch", "detail": "Rate limit exceeded (429)"}
