"""
Process entry point for the price oracle.

The transport layer (HTTP or MCP) lives outside this package; it enters
``oracle_lifespan`` once at startup and calls the yielded service. Running
this module directly performs a one-off health check, which deployments use
as a smoke test.
"""

import asyncio
import json
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog

from .core.config import Settings, get_settings
from .services.oracle import OracleService, build_oracle

logger = structlog.get_logger()


@asynccontextmanager
async def oracle_lifespan(settings: Settings | None = None) -> AsyncGenerator[OracleService, None]:
    """Build the oracle, start background maintenance and close it on exit."""
    settings = settings or get_settings()

    # Set the root logger level from settings so structlog output is visible
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting price oracle", environment=settings.environment)

    oracle = build_oracle(settings)
    oracle.start()
    try:
        yield oracle
    finally:
        logger.info("Shutting down price oracle")
        await oracle.close()


async def _health_report() -> dict:
    async with oracle_lifespan() as oracle:
        snapshot = await oracle.health_check()
        return {"healthy": snapshot.healthy, **snapshot.to_dict()}


def main() -> int:
    """Print a health snapshot as JSON; exit non-zero when degraded."""
    report = asyncio.run(_health_report())
    print(json.dumps(report, indent=2))
    return 0 if report["healthy"] else 1


if __name__ == "__main__":
    sys.exit(main())
