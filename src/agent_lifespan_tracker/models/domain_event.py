"""DomainEvent: one decoded LifeExtended occurrence.

Identity is tx_id. Two DomainEvents with the same tx_id are the same event
and collapse to one on merge (first write wins, transactions are immutable).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

UINT256_MAX = 2**256 - 1


def _check_uint256(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"{name} out of uint256 range: {value}")


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """LifeExtended event as stored in the cache.

    Amounts are exact Python ints (unbounded precision), never floats.
    """

    agent_id: str
    """Opaque agent identifier (not necessarily an address)."""
    payment_amount: int
    """Amount paid, in stable-asset base units (uint256)."""
    burned_amount: int
    """Native token destroyed, in base units (uint256)."""
    new_expiry_time: int
    """Unix seconds of the agent's new time of death (uint256)."""
    paid_with_stable_asset: bool
    observed_at: datetime
    """Timestamp of the containing block (timezone-aware, UTC)."""
    tx_id: str
    """Transaction hash, lowercase 0x-hex. The dedup key."""
    block_height: int

    def __post_init__(self) -> None:
        _check_uint256("payment_amount", self.payment_amount)
        _check_uint256("burned_amount", self.burned_amount)
        _check_uint256("new_expiry_time", self.new_expiry_time)
        if self.observed_at.tzinfo is None:
            raise ValueError("observed_at must be timezone-aware")
        if not self.tx_id:
            raise ValueError("tx_id must be non-empty")
        if self.block_height < 0:
            raise ValueError("block_height must be >= 0")

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Chronological order with tx_id as tie-break."""
        return (self.observed_at, self.tx_id)

    @classmethod
    def create(
        cls,
        *,
        agent_id: str,
        payment_amount: int,
        burned_amount: int,
        new_expiry_time: int,
        paid_with_stable_asset: bool,
        tx_id: str,
        block_height: int,
        observed_at: datetime | None = None,
    ) -> DomainEvent:
        """Create an event, normalizing tx_id and the timestamp to UTC."""
        tx_id = tx_id.strip().lower()
        at = observed_at or datetime.now(UTC)
        return cls(
            agent_id=agent_id,
            payment_amount=payment_amount,
            burned_amount=burned_amount,
            new_expiry_time=new_expiry_time,
            paid_with_stable_asset=paid_with_stable_asset,
            observed_at=at.astimezone(UTC),
            tx_id=tx_id,
            block_height=block_height,
        )
