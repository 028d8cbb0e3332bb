"""EventDecoder: raw LifeExtended log + block timestamp -> DomainEvent."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from agent_lifespan_tracker.clients.rpc_client import parse_quantity
from agent_lifespan_tracker.exceptions import DecodeError
from agent_lifespan_tracker.models.domain_event import DomainEvent
from agent_lifespan_tracker.utils.dedupe import tx_key

if TYPE_CHECKING:
    from agent_lifespan_tracker.clients.rpc_client import RawLogSchema

# LifeExtended(string agentId, uint256 usdcAmount, uint256 a0xBurned, uint256 newTimeToDeath, bool useUSDC)
# No indexed parameters: everything is in data, topics == [topic0].
LIFE_EXTENDED_TYPES = ("string", "uint256", "uint256", "uint256", "bool")


def _hex_to_bytes(value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith(("0x", "0X")):
        raise ValueError("data must be a 0x-prefixed hex string")
    return bytes.fromhex(value[2:])


class EventDecoder:
    """Decodes LifeExtended logs. Failures are schema mismatches, never retried."""

    def __init__(self, event_topic: str) -> None:
        self._topic = event_topic.strip().lower()

    def decode(self, raw_log: "RawLogSchema", block_timestamp: int) -> DomainEvent:
        """Return exactly one DomainEvent for raw_log.

        Args:
            raw_log: eth_getLogs item.
            block_timestamp: Unix seconds of the containing block.

        Raises:
            DecodeError: On wrong topic, malformed data, or missing identifiers.
        """
        tx_id = tx_key(dict(raw_log))
        if tx_id is None:
            raise DecodeError("log has no transactionHash")
        if raw_log.get("removed"):
            raise DecodeError("log was removed by a reorg", tx_id=tx_id)

        topics = raw_log.get("topics") or []
        if not topics or str(topics[0]).lower() != self._topic:
            raise DecodeError(f"unexpected topic0 {topics[0] if topics else None!r}", tx_id=tx_id)
        if len(topics) != 1:
            raise DecodeError(f"expected 1 topic, got {len(topics)}", tx_id=tx_id)

        try:
            block_height = parse_quantity(raw_log.get("blockNumber"))
            agent_id, payment, burned, expiry, stable = abi_decode(
                list(LIFE_EXTENDED_TYPES), _hex_to_bytes(raw_log.get("data"))
            )
        except (DecodingError, ValueError, UnicodeDecodeError, OverflowError) as e:
            raise DecodeError(f"malformed LifeExtended log: {e}", tx_id=tx_id) from e

        if not agent_id:
            raise DecodeError("empty agentId", tx_id=tx_id)

        return DomainEvent(
            agent_id=agent_id,
            payment_amount=payment,
            burned_amount=burned,
            new_expiry_time=expiry,
            paid_with_stable_asset=bool(stable),
            observed_at=datetime.fromtimestamp(block_timestamp, tz=UTC),
            tx_id=tx_id,
            block_height=block_height,
        )
