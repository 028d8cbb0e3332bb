# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from agent_lifespan_tracker.clients.http import AsyncHttpClient
from agent_lifespan_tracker.clients.profile_api import AgentProfileClient
from agent_lifespan_tracker.clients.rpc_client import RpcClient
from agent_lifespan_tracker.config import Settings, get_settings, validate_ingestion_settings
from agent_lifespan_tracker.persistence.backends import (
    IKeyValueBackend,
    InMemoryKeyValueBackend,
    RedisKeyValueBackend,
)
from agent_lifespan_tracker.persistence.repositories import KeyValueEventStore
from agent_lifespan_tracker.services.decoder import EventDecoder
from agent_lifespan_tracker.services.fetcher import LogFetcher
from agent_lifespan_tracker.services.stats import StatusPolicy
from agent_lifespan_tracker.services.sync import SyncOrchestrator
from agent_lifespan_tracker.services.tracker import LifespanTracker


def _build_http_client(settings: Settings) -> AsyncHttpClient:
    return AsyncHttpClient(
        timeout_seconds=settings.rpc.timeout_seconds,
        max_retries=settings.rpc.max_retries,
    )


def _build_rpc_client(settings: Settings, http_client: AsyncHttpClient) -> RpcClient:
    validate_ingestion_settings(settings)
    return RpcClient(
        http_client,
        str(settings.rpc.url),
        max_retries=settings.rpc.max_retries,
    )


def _build_kv_backend(settings: Settings) -> IKeyValueBackend:
    """Select the backend from settings.store.backend."""
    store = settings.store
    if store.backend == "memory":
        return InMemoryKeyValueBackend()
    validate_ingestion_settings(settings)
    return RedisKeyValueBackend(
        str(store.redis_url),
        timeout_seconds=store.timeout_seconds,
        max_retries=store.max_retries,
    )


def _build_event_store(settings: Settings, backend: IKeyValueBackend) -> KeyValueEventStore:
    return KeyValueEventStore(
        backend,
        events_key=settings.store.events_key,
        checkpoint_key=settings.store.checkpoint_key,
        max_merge_attempts=settings.store.max_merge_attempts,
    )


def _build_log_fetcher(settings: Settings, rpc_client: RpcClient) -> LogFetcher:
    sync = settings.sync
    return LogFetcher(
        rpc_client,
        contract_address=str(settings.contract.address),
        event_topic=str(settings.contract.event_topic),
        chunk_size=sync.chunk_size,
        max_retries=sync.max_chunk_retries,
        backoff_base_seconds=sync.backoff_base_seconds,
        backoff_max_seconds=sync.backoff_max_seconds,
        inter_chunk_delay_seconds=sync.inter_chunk_delay_seconds,
    )


def _build_sync_orchestrator(
    settings: Settings,
    rpc_client: RpcClient,
    fetcher: LogFetcher,
    decoder: EventDecoder,
    store: KeyValueEventStore,
) -> SyncOrchestrator:
    return SyncOrchestrator(
        rpc_client,
        fetcher,
        decoder,
        store,
        contract_address=str(settings.contract.address),
        lookback_blocks=settings.sync.lookback_blocks,
        deadline_seconds=settings.sync.deadline_seconds,
        verify_contract=settings.sync.verify_contract,
    )


def _build_profile_client(settings: Settings, http_client: AsyncHttpClient) -> AgentProfileClient:
    profiles = settings.profiles
    return AgentProfileClient(
        http_client,
        api_url=profiles.api_url,
        enabled=profiles.enabled,
        cache_ttl_seconds=profiles.cache_ttl_seconds,
        cache_maxsize=profiles.cache_maxsize,
    )


def _build_tracker(
    settings: Settings,
    orchestrator: SyncOrchestrator,
    store: KeyValueEventStore,
    profile_client: AgentProfileClient,
) -> LifespanTracker:
    return LifespanTracker(
        orchestrator,
        store,
        status_policy=StatusPolicy(critical_threshold_days=settings.status.critical_threshold_days),
        burn_decimals=settings.contract.burn_token_decimals,
        stable_units_per_week=settings.contract.stable_units_per_week,
        profile_client=profile_client,
    )


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, clients, store, services and the tracker facade."""

    config = providers.Callable(get_settings)

    http_client = providers.Singleton(_build_http_client, config)

    rpc_client = providers.Singleton(_build_rpc_client, config, http_client)

    kv_backend = providers.Singleton(_build_kv_backend, config)

    event_store = providers.Singleton(_build_event_store, config, kv_backend)

    log_fetcher = providers.Singleton(_build_log_fetcher, config, rpc_client)

    event_decoder = providers.Singleton(
        EventDecoder,
        event_topic=config.provided.contract.event_topic,
    )

    sync_orchestrator = providers.Singleton(
        _build_sync_orchestrator,
        config,
        rpc_client,
        log_fetcher,
        event_decoder,
        event_store,
    )

    profile_client = providers.Singleton(_build_profile_client, config, http_client)

    lifespan_tracker = providers.Singleton(
        _build_tracker,
        config,
        sync_orchestrator,
        event_store,
        profile_client,
    )
