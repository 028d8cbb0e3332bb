"""Configuration subpackage."""

from agent_lifespan_tracker.config.config import (
    AppSettings,
    ContractSettings,
    LoggingSettings,
    ProfileSettings,
    RpcSettings,
    Settings,
    StatusSettings,
    StoreSettings,
    SyncSettings,
    get_settings,
    validate_ingestion_settings,
)

__all__ = [
    "AppSettings",
    "ContractSettings",
    "LoggingSettings",
    "ProfileSettings",
    "RpcSettings",
    "Settings",
    "StatusSettings",
    "StoreSettings",
    "SyncSettings",
    "get_settings",
    "validate_ingestion_settings",
]
