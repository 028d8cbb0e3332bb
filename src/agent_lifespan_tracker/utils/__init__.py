# -*- coding: utf-8 -*-
"""Utility modules."""

from agent_lifespan_tracker.utils.dedupe import normalize_tx_id, tx_key
from agent_lifespan_tracker.utils.validation import (
    is_hex_address,
    is_topic,
    mask_address,
    mask_url,
)

__all__ = [
    "is_hex_address",
    "is_topic",
    "mask_address",
    "mask_url",
    "normalize_tx_id",
    "tx_key",
]
