"""
Source adapters for upstream price and gas providers.

Each adapter wraps exactly one upstream call, normalizes the response into a
canonical record and raises ``UpstreamError`` on any failure. Fallback and
retry are not the adapter's job; resolvers walk the chains built in
``defaults``.
"""

from .base import HttpSourceAdapter, SourceAdapter, create_http_client
from .coingecko import (
    CoinGeckoHistoricalAdapter,
    CoinGeckoPriceAdapter,
    CoinGeckoPublicPriceAdapter,
)
from .defaults import ProviderChains, build_default_chains
from .gas import (
    EthGasStationAdapter,
    EtherscanGasAdapter,
    JsonRpcGasAdapter,
    OwlracleGasAdapter,
)

__all__ = [
    "SourceAdapter",
    "HttpSourceAdapter",
    "create_http_client",
    "CoinGeckoPriceAdapter",
    "CoinGeckoPublicPriceAdapter",
    "CoinGeckoHistoricalAdapter",
    "OwlracleGasAdapter",
    "JsonRpcGasAdapter",
    "EtherscanGasAdapter",
    "EthGasStationAdapter",
    "ProviderChains",
    "build_default_chains",
]
