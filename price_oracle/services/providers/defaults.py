"""
Default provider chains.

Builds every adapter once from settings and arranges them into the fixed
fallback order each category uses. To add a provider, construct it here and
insert it at the right position in its chain.
"""

from dataclasses import dataclass, field

import httpx
import structlog

from ...core.config import Settings
from ..resolution.types import Network
from .base import HttpSourceAdapter
from .coingecko import (
    CoinGeckoHistoricalAdapter,
    CoinGeckoPriceAdapter,
    CoinGeckoPublicPriceAdapter,
)
from .gas import (
    EthGasStationAdapter,
    EtherscanGasAdapter,
    JsonRpcGasAdapter,
    OwlracleGasAdapter,
)

logger = structlog.get_logger(__name__)


@dataclass
class ProviderChains:
    """Ordered adapter chains per category (and per network for gas)."""

    token_price: list[HttpSourceAdapter]
    historical_price: list[HttpSourceAdapter]
    gas_price: dict[str, list[HttpSourceAdapter]] = field(default_factory=dict)

    def all_adapters(self) -> list[HttpSourceAdapter]:
        """Every distinct adapter across all chains, first-seen order."""
        seen: dict[str, HttpSourceAdapter] = {}
        chains = [self.token_price, self.historical_price, *self.gas_price.values()]
        for chain in chains:
            for adapter in chain:
                seen.setdefault(adapter.provider_name, adapter)
        return list(seen.values())


def build_default_chains(settings: Settings, client: httpx.AsyncClient) -> ProviderChains:
    """
    Build the production chains.

    Token price: coingecko (only when a key is configured) → coingecko-public
    Historical:  coingecko-history
    Gas polygon: owlracle → polygon-rpc
    Gas ethereum: ethgasstation → etherscan
    """
    token_price: list[HttpSourceAdapter] = []
    if settings.has_coingecko_key:
        token_price.append(
            CoinGeckoPriceAdapter(
                client,
                api_key=settings.coingecko_api_key,
                base_url=settings.coingecko_base_url,
            )
        )
    token_price.append(
        CoinGeckoPublicPriceAdapter(client, base_url=settings.coingecko_base_url)
    )

    historical_price: list[HttpSourceAdapter] = [
        CoinGeckoHistoricalAdapter(
            client,
            api_key=settings.coingecko_api_key,
            base_url=settings.coingecko_base_url,
        )
    ]

    gas_price: dict[str, list[HttpSourceAdapter]] = {
        Network.POLYGON.value: [
            OwlracleGasAdapter(client),
            JsonRpcGasAdapter(client, rpc_url=settings.polygon_rpc_url),
        ],
        Network.ETHEREUM.value: [
            EthGasStationAdapter(client),
            EtherscanGasAdapter(client, api_key=settings.etherscan_api_key),
        ],
    }

    chains = ProviderChains(
        token_price=token_price,
        historical_price=historical_price,
        gas_price=gas_price,
    )
    logger.info(
        "provider_chains_built",
        token_price=[a.provider_name for a in token_price],
        historical_price=[a.provider_name for a in historical_price],
        gas_price={n: [a.provider_name for a in c] for n, c in gas_price.items()},
    )
    return chains
