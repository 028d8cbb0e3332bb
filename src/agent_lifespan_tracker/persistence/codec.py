# -*- coding: utf-8 -*-
"""Storage encoding of the event history and the checkpoint.

Layout (JSON):
    [{"agentId": "...", "paymentAmount": "<decimal>", "burnedAmount": "<decimal>",
      "newExpiryTime": "<decimal>", "paidWithStableAsset": true,
      "observedAt": "2025-01-31T12:00:00+00:00", "txId": "0x...", "blockHeight": 123}, ...]

uint256 values are decimal strings so they never pass through a float. The
checkpoint is a plain integer. Field names of earlier cache versions
(usdcAmount, a0xBurned, newTimeToDeath, useUSDC, timestamp, transactionHash,
blockNumber) are still accepted on read.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any, Optional

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from agent_lifespan_tracker.exceptions import StoreCorruptError
from agent_lifespan_tracker.models.domain_event import UINT256_MAX, DomainEvent
from agent_lifespan_tracker.utils.dedupe import normalize_tx_id

TIMESTAMP_SENTINEL = datetime(1970, 1, 1, tzinfo=UTC)
"""Substituted for stored timestamps that cannot be parsed."""

_TIMESTAMP_KEYS = ("observedAt", "timestamp", "observed_at")


def _to_decimal_string(value: Any) -> str:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"expected an integer or decimal string, got {type(value).__name__}")
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        n = int(value.strip())
    else:
        raise ValueError(f"not a decimal integer: {value!r}")
    if n < 0 or n > UINT256_MAX:
        raise ValueError(f"out of uint256 range: {n}")
    return str(n)


class StoredEventRecord(BaseModel):
    """One persisted DomainEvent."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    agent_id: str = Field(
        validation_alias=AliasChoices("agentId", "agent_id"),
        serialization_alias="agentId",
    )
    payment_amount: str = Field(
        validation_alias=AliasChoices("paymentAmount", "usdcAmount", "payment_amount"),
        serialization_alias="paymentAmount",
    )
    burned_amount: str = Field(
        validation_alias=AliasChoices("burnedAmount", "a0xBurned", "burned_amount"),
        serialization_alias="burnedAmount",
    )
    new_expiry_time: str = Field(
        validation_alias=AliasChoices("newExpiryTime", "newTimeToDeath", "new_expiry_time"),
        serialization_alias="newExpiryTime",
    )
    paid_with_stable_asset: bool = Field(
        default=False,
        validation_alias=AliasChoices("paidWithStableAsset", "useUSDC", "paid_with_stable_asset"),
        serialization_alias="paidWithStableAsset",
    )
    observed_at: datetime = Field(
        validation_alias=AliasChoices("observedAt", "timestamp", "observed_at"),
        serialization_alias="observedAt",
    )
    tx_id: str = Field(
        validation_alias=AliasChoices("txId", "transactionHash", "tx_id"),
        serialization_alias="txId",
    )
    block_height: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("blockHeight", "blockNumber", "block_height"),
        serialization_alias="blockHeight",
    )

    @field_validator("payment_amount", "burned_amount", "new_expiry_time", mode="before")
    @classmethod
    def _uint256(cls, v: Any) -> str:
        return _to_decimal_string(v)

    @field_validator("tx_id")
    @classmethod
    def _tx_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("txId must be non-empty")
        return normalize_tx_id(v)

    @classmethod
    def from_domain(cls, event: DomainEvent) -> StoredEventRecord:
        return cls(
            agent_id=event.agent_id,
            payment_amount=str(event.payment_amount),
            burned_amount=str(event.burned_amount),
            new_expiry_time=str(event.new_expiry_time),
            paid_with_stable_asset=event.paid_with_stable_asset,
            observed_at=event.observed_at.astimezone(UTC),
            tx_id=event.tx_id,
            block_height=event.block_height,
        )

    def to_domain(self) -> DomainEvent:
        return DomainEvent(
            agent_id=self.agent_id,
            payment_amount=int(self.payment_amount),
            burned_amount=int(self.burned_amount),
            new_expiry_time=int(self.new_expiry_time),
            paid_with_stable_asset=self.paid_with_stable_asset,
            observed_at=self.observed_at,
            tx_id=self.tx_id,
            block_height=self.block_height,
        )


_RECORDS = TypeAdapter(list[StoredEventRecord])


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into an aware UTC datetime, or None.

    Accepts ISO-8601 strings (naive ones are taken as UTC), datetimes, and
    numeric epoch milliseconds (number or digit string).
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, (int, float)):
            dt = datetime.fromtimestamp(value / 1000, tz=UTC)
        elif isinstance(value, str):
            s = value.strip()
            if s.lstrip("-").isdigit():
                dt = datetime.fromtimestamp(int(s) / 1000, tz=UTC)
            else:
                dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        else:
            return None
    except (ValueError, OverflowError, OSError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class EventCodec:
    """Encodes/decodes the event list and the checkpoint for the key-value backend."""

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def encode_events(self, events: Iterable[DomainEvent]) -> bytes:
        """Serialize events sorted by (observed_at, tx_id)."""
        ordered = sorted(events, key=lambda e: e.sort_key)
        records = [StoredEventRecord.from_domain(e) for e in ordered]
        return _RECORDS.dump_json(records, by_alias=True)

    def decode_events(self, raw: bytes | None) -> list[DomainEvent]:
        """Deserialize the stored list, repairing or dropping bad records.

        A record whose timestamp cannot be parsed gets TIMESTAMP_SENTINEL.
        A record with unusable integers or no txId is dropped. Duplicate
        txIds keep the first occurrence.

        Raises:
            StoreCorruptError: If the payload is not JSON or not an event list.
        """
        if not raw:
            return []
        try:
            payload = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            self._logger.error("event_codec_unreadable_history", error_message=str(e))
            raise StoreCorruptError(f"stored history is not valid JSON: {e}") from e
        if isinstance(payload, dict):
            payload = payload.get("events", [])
        if not isinstance(payload, list):
            self._logger.error("event_codec_unexpected_shape", payload_type=type(payload).__name__)
            raise StoreCorruptError(f"stored history is a {type(payload).__name__}, not a list")

        by_tx: dict[str, DomainEvent] = {}
        repaired = dropped = 0
        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                dropped += 1
                continue
            item = dict(item)
            ts_key = next((k for k in _TIMESTAMP_KEYS if k in item), "observedAt")
            instant = parse_instant(item.get(ts_key))
            if instant is None:
                repaired += 1
                self._logger.warning(
                    "event_codec_timestamp_repaired",
                    record_index=index,
                    stored_timestamp=repr(item.get(ts_key)),
                )
                instant = TIMESTAMP_SENTINEL
            item[ts_key] = instant
            try:
                event = StoredEventRecord.model_validate(item).to_domain()
            except (ValidationError, ValueError, TypeError) as e:
                dropped += 1
                self._logger.warning(
                    "event_codec_record_dropped",
                    record_index=index,
                    error_message=str(e),
                )
                continue
            by_tx.setdefault(event.tx_id, event)

        if repaired or dropped:
            self._logger.warning(
                "event_codec_history_repaired",
                repaired_count=repaired,
                dropped_count=dropped,
            )
        return sorted(by_tx.values(), key=lambda e: e.sort_key)

    @staticmethod
    def encode_checkpoint(height: int) -> bytes:
        return str(int(height)).encode("ascii")

    def decode_checkpoint(self, raw: bytes | None) -> Optional[int]:
        """Return the stored checkpoint, or None if absent or corrupt."""
        if raw is None:
            return None
        text = raw.decode("utf-8", errors="replace").strip().strip('"')
        if not (text.isascii() and text.isdigit()):
            self._logger.warning("event_codec_checkpoint_corrupt", stored_checkpoint=text[:64])
            return None
        return int(text)
