# -*- coding: utf-8 -*-
"""
Entry point for the agent lifespan tracker.

Runs one ingestion cycle: logging, settings, container, sync, status summary, shutdown.

Run with: python -m agent_lifespan_tracker.main

Notebook usage:
    from agent_lifespan_tracker.main import run
    result = await run()
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog

from agent_lifespan_tracker.config import get_settings, validate_ingestion_settings
from agent_lifespan_tracker.DI import Container
from agent_lifespan_tracker.exceptions import ConfigurationError, LifespanTrackerError
from agent_lifespan_tracker.logging.config import configure_logging
from agent_lifespan_tracker.models import AgentStatus
from agent_lifespan_tracker.services.sync import SyncResult
from agent_lifespan_tracker.utils import mask_address, mask_url


async def run() -> SyncResult:
    configure_logging()
    logger = structlog.get_logger("main")
    settings = get_settings()
    try:
        validate_ingestion_settings(settings)
    except ConfigurationError as e:
        logger.error("main_invalid_configuration", **e.to_dict())
        raise

    container = Container()
    http_client = container.http_client()
    backend = container.kv_backend()
    tracker = container.lifespan_tracker()

    logger.info(
        "main_sync_started",
        rpc_url=mask_url(settings.rpc.url),
        contract_address=mask_address(str(settings.contract.address)),
        store_backend=settings.store.backend,
    )
    try:
        try:
            result = await tracker.sync()
        except LifespanTrackerError as e:
            logger.error("main_sync_failed", **e.to_dict())
            raise
        logger.info("main_sync_result", **result.to_dict())

        now = datetime.now(timezone.utc)
        metrics = await tracker.get_metrics(now)
        logger.info(
            "main_agent_summary",
            total_agents=metrics.total_agents,
            active_agents=metrics.active_agents,
            critical_agents=metrics.critical_agents,
            inactive_agents=metrics.inactive_agents,
            total_burned=str(metrics.total_burned),
            burned_last_week=str(metrics.burned_last_week),
            average_extension_days=str(metrics.average_extension_days),
        )
        for stats in await tracker.get_agent_stats(now):
            if stats.status is AgentStatus.CRITICAL:
                logger.warning(
                    "main_agent_critical",
                    agent_id=stats.agent_id,
                    remaining_days=stats.remaining_days,
                )
        return result
    finally:
        await http_client.aclose()
        await backend.aclose()
        logger.info("main_shutdown_complete")


def main() -> None:
    asyncio.run(run())


__all__ = ["run", "main"]

if __name__ == "__main__":
    main()
