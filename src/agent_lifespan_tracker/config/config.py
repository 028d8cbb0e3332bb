# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, RPC__URL, STORE__REDIS_URL.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_lifespan_tracker.exceptions import ConfigurationError

SECONDS_PER_DAY = 86_400


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "agent-lifespan-tracker"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    # Per-target levels (only the 5 standard levels)
    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Local outputs
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/lifespan_tracker.log"
    # TimedRotatingFileHandler: when to rotate (S/M/H/D/W0–W6/midnight), interval, backups to keep
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 30
    log_file_utc: bool = True

    # Main output format: JSONRenderer if True, ConsoleRenderer if False
    json_format: bool = False

    # Logfire integration via structlog
    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class RpcSettings(BaseSettings):
    """Execution-layer JSON-RPC node (from env RPC__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    url: Optional[str] = Field(
        default="https://mainnet.base.org",
        description="JSON-RPC endpoint of the execution-layer node.",
    )
    chain_id: int = Field(default=8453, description="Chain ID (8453 for Base mainnet).")
    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="Per-call HTTP timeout in seconds.",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for single RPC calls (block number, block, code).",
    )


class ContractSettings(BaseSettings):
    """Tracked contract and LifeExtended event (from env CONTRACT__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    address: Optional[str] = Field(
        default="0x32659ea613ce1706abea4109f9e2d5840196c187",
        description="Address of the contract emitting LifeExtended.",
    )
    event_topic: Optional[str] = Field(
        default="0x2cfe7b018315264be29a983ebbd20ba03cea5b8f692cec92ff3b44c7c23e227c",
        description="topic0 of LifeExtended(string,uint256,uint256,uint256,bool).",
    )
    burn_token_decimals: int = Field(default=18, ge=0, le=36)
    stable_units_per_week: int = Field(
        default=1_000_000,
        ge=1,
        description="Stable-asset base units buying 7 days of life (USDC has 6 decimals).",
    )


class SyncSettings(BaseSettings):
    """Block-range ingestion tuning (from env SYNC__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    chunk_size: int = Field(
        default=2880,
        ge=1,
        le=100_000,
        description="Blocks per eth_getLogs request.",
    )
    inter_chunk_delay_seconds: float = Field(default=2.0, ge=0.0, le=60.0)
    max_chunk_retries: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Attempts per sub-chunk before it is skipped as unconfirmed.",
    )
    backoff_base_seconds: float = Field(default=2.0, ge=0.0, le=60.0)
    backoff_max_seconds: float = Field(default=30.0, ge=0.0, le=600.0)
    lookback_days: int = Field(
        default=30,
        ge=1,
        le=3650,
        description="Bootstrap window when no checkpoint exists.",
    )
    block_time_seconds: float = Field(
        default=2.0,
        gt=0.0,
        le=60.0,
        description="Expected block interval, used to turn lookback_days into blocks.",
    )
    deadline_seconds: float = Field(
        default=300.0,
        gt=0.0,
        le=3600.0,
        description="Overall deadline of one sync cycle.",
    )
    verify_contract: bool = Field(
        default=True,
        description="Check that contract code exists before the first fetch.",
    )

    @computed_field
    @property
    def lookback_blocks(self) -> int:
        """Number of blocks approximating lookback_days at block_time_seconds."""
        return int(self.lookback_days * SECONDS_PER_DAY / self.block_time_seconds)


class StoreSettings(BaseSettings):
    """Persistent key-value store holding events and checkpoint (from env STORE__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    backend: Literal["redis", "memory"] = "redis"
    redis_url: Optional[str] = Field(default=None, description="redis://[:password@]host:port/db")
    events_key: str = "life_extended_events"
    checkpoint_key: str = "last_block"
    timeout_seconds: float = Field(default=3.0, ge=0.1, le=60.0)
    max_retries: int = Field(default=2, ge=0, le=10)
    max_merge_attempts: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Optimistic read/compare-and-set attempts before giving up.",
    )


class StatusSettings(BaseSettings):
    """Agent health classification policy (from env STATUS__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    critical_threshold_days: int = Field(
        default=5,
        ge=0,
        description="Agents with 0 < remaining days <= this value are critical.",
    )


class ProfileSettings(BaseSettings):
    """Optional agent profile lookup (from env PROFILES__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = False
    api_url: Optional[str] = Field(default=None, description="Endpoint listing agent profiles.")
    cache_ttl_seconds: float = Field(default=300.0, ge=0.0, le=86_400.0)
    cache_maxsize: int = Field(default=2048, ge=1, le=100_000)


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, SYNC__CHUNK_SIZE.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    rpc: RpcSettings = Field(default_factory=RpcSettings)
    contract: ContractSettings = Field(default_factory=ContractSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    status: StatusSettings = Field(default_factory=StatusSettings)
    profiles: ProfileSettings = Field(default_factory=ProfileSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as flat keys or nested dicts, e.g.:
        - from_env(sync__chunk_size=500)
        - from_env(store={"backend": "memory"})

        Returns:
            A new Settings instance.
        """
        return cls(**overrides)


def validate_ingestion_settings(settings: Settings) -> None:
    """Fail fast when the ingestion path lacks a required endpoint or credential.

    Raises:
        ConfigurationError: naming every missing value.
    """
    missing: list[str] = []
    if not (settings.rpc.url or "").strip():
        missing.append("RPC__URL")
    if not (settings.contract.address or "").strip():
        missing.append("CONTRACT__ADDRESS")
    if not (settings.contract.event_topic or "").strip():
        missing.append("CONTRACT__EVENT_TOPIC")
    if settings.store.backend == "redis" and not (settings.store.redis_url or "").strip():
        missing.append("STORE__REDIS_URL")
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from agent_lifespan_tracker.config import get_settings

        settings = get_settings()
        chunk_size = settings.sync.chunk_size
        console_level = settings.logging.console_level
    """
    return Settings()
