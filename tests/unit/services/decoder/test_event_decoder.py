# -*- coding: utf-8 -*-
"""Unit tests for EventDecoder."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from agent_lifespan_tracker.exceptions import DecodeError
from agent_lifespan_tracker.services.decoder import EventDecoder

TOPIC = "0x2cfe7b018315264be29a983ebbd20ba03cea5b8f692cec92ff3b44c7c23e227c"
BLOCK_TS = 1_770_000_000


@pytest.fixture
def decoder() -> EventDecoder:
    return EventDecoder(TOPIC.upper().replace("0X", "0x"))


def test_decode_maps_every_field(decoder: EventDecoder, raw_log_factory: Callable[..., Any]) -> None:
    big = 2**200 + 12345
    raw = raw_log_factory(
        agent_id="0bd2577b-agent",
        payment_amount=3_000_000,
        burned_amount=big,
        new_expiry_time=1_800_000_000,
        paid_with_stable_asset=False,
        block_number=4242,
        transaction_hash="0x" + "AB" * 32,
    )

    event = decoder.decode(raw, BLOCK_TS)

    assert event.agent_id == "0bd2577b-agent"
    assert event.payment_amount == 3_000_000
    assert event.burned_amount == big
    assert event.new_expiry_time == 1_800_000_000
    assert event.paid_with_stable_asset is False
    assert event.observed_at == datetime.fromtimestamp(BLOCK_TS, tz=timezone.utc)
    assert event.tx_id == "0x" + "ab" * 32
    assert event.block_height == 4242


def test_decode_rejects_foreign_topic(decoder: EventDecoder, raw_log_factory: Callable[..., Any]) -> None:
    raw = raw_log_factory(topics=["0x" + "00" * 32])

    with pytest.raises(DecodeError) as exc_info:
        decoder.decode(raw, BLOCK_TS)

    assert exc_info.value.tx_id is not None
    assert exc_info.value.to_dict()["category"] == "decode"


def test_decode_rejects_indexed_topics(decoder: EventDecoder, raw_log_factory: Callable[..., Any]) -> None:
    raw = raw_log_factory(topics=[TOPIC, "0x" + "11" * 32])

    with pytest.raises(DecodeError):
        decoder.decode(raw, BLOCK_TS)


@pytest.mark.parametrize("data", ["0x", "0x1234", "not-hex", "0x" + "zz" * 32])
def test_decode_rejects_malformed_data(
    decoder: EventDecoder,
    raw_log_factory: Callable[..., Any],
    data: str,
) -> None:
    raw = raw_log_factory(data=data)

    with pytest.raises(DecodeError):
        decoder.decode(raw, BLOCK_TS)


def test_decode_rejects_missing_tx_hash(decoder: EventDecoder, raw_log_factory: Callable[..., Any]) -> None:
    raw = raw_log_factory(transactionHash=None)

    with pytest.raises(DecodeError):
        decoder.decode(raw, BLOCK_TS)


def test_decode_rejects_removed_log(decoder: EventDecoder, raw_log_factory: Callable[..., Any]) -> None:
    with pytest.raises(DecodeError):
        decoder.decode(raw_log_factory(removed=True), BLOCK_TS)


def test_decode_rejects_empty_agent_id(decoder: EventDecoder, raw_log_factory: Callable[..., Any]) -> None:
    with pytest.raises(DecodeError):
        decoder.decode(raw_log_factory(agent_id=""), BLOCK_TS)
