"""
Oracle Service - Single entry point for all oracle data access.

The OracleService provides a unified interface for:
- Live token prices (30s TTL)
- Network gas prices, single network or several at once (30s TTL)
- Historical token prices (24h TTL)
- Simulated contract event publishing
- Provider health reporting

Key Features:
- Cache-then-fallback resolution per data category
- Partial results for multi-network requests
- Dependencies built once in ``build_oracle`` and shared across calls
"""

from collections.abc import Iterable, Mapping
from typing import Any

import httpx
import structlog

from ..core.config import Settings
from .providers import build_default_chains, create_http_client
from .publisher import ContractEventPublisher
from .resolution import (
    CacheSweeper,
    Category,
    ContractEvent,
    GasPriceResolver,
    GasRecord,
    HealthReporter,
    HealthSnapshot,
    HistoricalPriceRecord,
    HistoricalPriceResolver,
    MemoryCache,
    MultiTargetAggregator,
    Network,
    PriceRecord,
    Resolved,
    TokenPriceResolver,
)

logger = structlog.get_logger(__name__)

DEFAULT_GAS_NETWORKS = (Network.POLYGON.value, Network.ETHEREUM.value)


class OracleService:
    """
    Single source of truth for oracle requests.

    All consumers (transport handlers, scripts, dashboards) should use this
    class instead of calling resolvers or adapters directly.

    Cache Strategy:
    - Token and gas prices: short TTL, refreshed from providers on expiry
    - Historical prices: 24 hour TTL, a past date never changes
    - Multi-network gas: not cached as a whole, each network is cached
    - Health: never cached
    """

    def __init__(
        self,
        cache: MemoryCache,
        token_price: TokenPriceResolver,
        gas_price: GasPriceResolver,
        historical_price: HistoricalPriceResolver,
        gas_aggregator: MultiTargetAggregator,
        health: HealthReporter,
        publisher: ContractEventPublisher,
        sweeper: CacheSweeper | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the Oracle Service.

        Args:
            cache: Shared cache used by every resolver and the publisher
            token_price: Live price resolver
            gas_price: Gas price resolver
            historical_price: Historical price resolver
            gas_aggregator: Multi-network gas fan-out
            health: Provider health reporter
            publisher: Simulated contract event publisher
            sweeper: Background cache sweeper (started by ``start``)
            http_client: HTTP client owned by the service (closed by ``close``)
        """
        self.cache = cache
        self._token_price = token_price
        self._gas_price = gas_price
        self._historical_price = historical_price
        self._gas_aggregator = gas_aggregator
        self._health = health
        self._publisher = publisher
        self._sweeper = sweeper
        self._http_client = http_client
        logger.info("oracle_service_initialized")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start background maintenance (cache sweeping)."""
        if self._sweeper is not None:
            self._sweeper.start()

    async def close(self) -> None:
        """Stop background maintenance and release the HTTP client."""
        if self._sweeper is not None:
            await self._sweeper.stop()
        if self._http_client is not None:
            await self._http_client.aclose()
        logger.info("oracle_service_closed")

    # =========================================================================
    # Prices
    # =========================================================================

    async def get_token_price(
        self,
        symbol: str,
        network: str = Network.POLYGON.value,
        timeout: float | None = None,
    ) -> Resolved[PriceRecord]:
        """
        Get the current USD price of a token.

        Args:
            symbol: Token symbol (e.g., "ETH", case-insensitive)
            network: Network name (default polygon)
            timeout: Deadline in seconds (configured default if None)

        Returns:
            Resolved PriceRecord, ``cached`` set when served from cache

        Raises:
            ValidationError: Malformed symbol or network
            ResolutionError: Every price provider failed
            ResolutionTimeoutError: Providers did not answer in time
        """
        return await self._token_price.resolve(timeout=timeout, symbol=symbol, network=network)

    async def get_historical_price(
        self,
        symbol: str,
        date: str,
        network: str = Network.POLYGON.value,
        timeout: float | None = None,
    ) -> Resolved[HistoricalPriceRecord]:
        """
        Get the USD price of a token on a past date.

        Args:
            symbol: Token symbol
            date: Date in YYYY-MM-DD format
            network: Network name (default polygon)
            timeout: Deadline in seconds (configured default if None)

        Returns:
            Resolved HistoricalPriceRecord
        """
        return await self._historical_price.resolve(
            timeout=timeout, symbol=symbol, date=date, network=network
        )

    # =========================================================================
    # Gas
    # =========================================================================

    async def get_gas_price(
        self, network: str = Network.POLYGON.value, timeout: float | None = None
    ) -> Resolved[GasRecord]:
        """Get gas price tiers (gwei) for one network, within ``timeout`` seconds if given."""
        return await self._gas_price.resolve(timeout=timeout, network=network)

    async def get_multi_network_gas_price(
        self, networks: Iterable[str] | None = None
    ) -> dict[str, Resolved[GasRecord]]:
        """
        Get gas prices for several networks concurrently.

        Networks whose providers all fail are missing from the result; the
        call itself only fails on an unknown network name.

        Args:
            networks: Networks to query (polygon and ethereum if None)

        Returns:
            Dict of network -> Resolved GasRecord for the networks that succeeded
        """
        return await self._gas_aggregator.resolve_all(networks)

    # =========================================================================
    # Publishing and health
    # =========================================================================

    def publish_to_contract(
        self,
        event_name: str,
        contract_address: str,
        data: Mapping[str, Any],
    ) -> ContractEvent:
        """Record a simulated contract event (never sent to a chain)."""
        return self._publisher.publish(event_name, contract_address, data)

    async def health_check(self) -> HealthSnapshot:
        """Probe every provider and report liveness."""
        return await self._health.snapshot()


def build_oracle(settings: Settings, client: httpx.AsyncClient | None = None) -> OracleService:
    """
    Build an OracleService and all of its dependencies from settings.

    Args:
        settings: Application settings
        client: Shared HTTP client; when omitted one is created and owned
            by the service

    Returns:
        Fully wired OracleService (call ``start`` to begin cache sweeping)
    """
    owned_client = client is None
    http_client = client if client is not None else create_http_client(settings.http_timeout_seconds)

    cache = MemoryCache(default_ttl_seconds=settings.cache_ttl_seconds)
    chains = build_default_chains(settings, http_client)

    token_price = TokenPriceResolver(
        cache,
        chains.token_price,
        ttl_seconds=settings.cache_ttl_seconds,
        timeout_seconds=settings.resolve_timeout_seconds,
    )
    gas_price = GasPriceResolver(
        cache,
        chains.gas_price,
        ttl_seconds=settings.cache_ttl_seconds,
        timeout_seconds=settings.resolve_timeout_seconds,
    )
    historical_price = HistoricalPriceResolver(
        cache,
        chains.historical_price,
        ttl_seconds=settings.historical_cache_ttl_seconds,
        timeout_seconds=settings.resolve_timeout_seconds,
    )

    async def resolve_gas(network: str) -> Resolved[GasRecord]:
        return await gas_price.resolve(network=network)

    gas_aggregator = MultiTargetAggregator(
        resolve_gas,
        targets=[n for n in DEFAULT_GAS_NETWORKS if n in gas_price.supported_networks],
        name=Category.GAS_PRICE.value,
    )

    health = HealthReporter(
        {
            Category.TOKEN_PRICE.value: token_price.providers(),
            Category.GAS_PRICE.value: gas_price.providers(),
            Category.HISTORICAL_PRICE.value: historical_price.providers(),
        },
        cache,
        probe_timeout_seconds=settings.health_probe_timeout_seconds,
    )

    return OracleService(
        cache=cache,
        token_price=token_price,
        gas_price=gas_price,
        historical_price=historical_price,
        gas_aggregator=gas_aggregator,
        health=health,
        publisher=ContractEventPublisher(cache),
        sweeper=CacheSweeper(cache, settings.cache_cleanup_interval_seconds),
        http_client=http_client if owned_client else None,
    )
