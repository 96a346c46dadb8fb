"""
Resolution engine - cache, category resolvers and aggregation.

Usage:
    from price_oracle.services.resolution import MemoryCache, TokenPriceResolver

    cache = MemoryCache(default_ttl_seconds=30)
    resolver = TokenPriceResolver(cache, chain=[coingecko_public])
    result = await resolver.resolve(symbol="ETH", network="polygon")
    result.to_dict()  # {"symbol": "ETH", "priceUsd": ..., "cached": True on hits}
"""

from .cache import CacheEntry, CacheSweeper, MemoryCache
from .keys import CacheKeys
from .types import (
    Category,
    ContractEvent,
    GasRecord,
    GasRequest,
    HealthSnapshot,
    HistoricalPriceRecord,
    HistoricalPriceRequest,
    Network,
    PriceRecord,
    PriceRequest,
    Resolved,
)
from .symbols import coingecko_id
from .resolver import (
    CategoryResolver,
    GasPriceResolver,
    HistoricalPriceResolver,
    TokenPriceResolver,
)
from .aggregator import MultiTargetAggregator
from .health import HealthReporter

__all__ = [
    # Cache
    "CacheEntry",
    "CacheSweeper",
    "MemoryCache",
    "CacheKeys",
    # Types
    "Category",
    "ContractEvent",
    "GasRecord",
    "GasRequest",
    "HealthSnapshot",
    "HistoricalPriceRecord",
    "HistoricalPriceRequest",
    "Network",
    "PriceRecord",
    "PriceRequest",
    "Resolved",
    "coingecko_id",
    # Resolvers
    "CategoryResolver",
    "TokenPriceResolver",
    "GasPriceResolver",
    "HistoricalPriceResolver",
    "MultiTargetAggregator",
    "HealthReporter",
]
