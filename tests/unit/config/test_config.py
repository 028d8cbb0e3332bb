# -*- coding: utf-8 -*-
"""Unit tests for settings and ingestion validation."""

from __future__ import annotations

import pytest

from agent_lifespan_tracker.config import Settings, validate_ingestion_settings
from agent_lifespan_tracker.exceptions import ConfigurationError


def test_defaults_target_base_mainnet_contract() -> None:
    settings = Settings()

    assert settings.rpc.chain_id == 8453
    assert settings.contract.address == "0x32659ea613ce1706abea4109f9e2d5840196c187"
    assert settings.sync.chunk_size == 2880
    assert settings.store.events_key == "life_extended_events"
    assert settings.store.checkpoint_key == "last_block"
    assert settings.status.critical_threshold_days == 5


def test_lookback_blocks_from_days_and_block_time() -> None:
    settings = Settings(sync={"lookback_days": 30, "block_time_seconds": 2.0})

    assert settings.sync.lookback_blocks == 1_296_000


def test_nested_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYNC__CHUNK_SIZE", "500")
    monkeypatch.setenv("STORE__BACKEND", "memory")

    settings = Settings()

    assert settings.sync.chunk_size == 500
    assert settings.store.backend == "memory"


def test_memory_backend_needs_no_redis_url() -> None:
    validate_ingestion_settings(Settings(store={"backend": "memory"}))


def test_missing_values_are_all_named() -> None:
    settings = Settings(
        rpc={"url": " "},
        contract={"address": ""},
        store={"backend": "redis", "redis_url": None},
    )

    with pytest.raises(ConfigurationError) as exc_info:
        validate_ingestion_settings(settings)

    assert exc_info.value.detail == "Missing required configuration: RPC__URL, CONTRACT__ADDRESS, STORE__REDIS_URL"
    assert exc_info.value.to_dict()["category"] == "configuration"
