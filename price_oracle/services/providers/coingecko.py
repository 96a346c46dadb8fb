"""
CoinGecko price adapters.

Three adapters share one upstream:
- ``coingecko``: keyed /simple/price with market cap, 24h volume and change
- ``coingecko-public``: unkeyed /simple/price, price only (rate limited)
- ``coingecko-history``: /coins/{id}/history for a single calendar date

Endpoints:
  GET {base}/simple/price?ids={id}&vs_currencies=usd[&include_...=true]
  GET {base}/coins/{id}/history?date=DD-MM-YYYY
  GET {base}/ping
"""

from typing import Any

import httpx

from ..resolution.types import (
    HistoricalPriceRecord,
    HistoricalPriceRequest,
    PriceRecord,
    PriceRequest,
    now_ms,
)
from .base import HttpSourceAdapter, optional_float, require_positive

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COINGECKO_KEY_HEADER = "x-cg-demo-api-key"


def to_coingecko_date(date: str) -> str:
    """Convert YYYY-MM-DD to the DD-MM-YYYY form CoinGecko expects."""
    year, month, day = date.split("-")
    return f"{day}-{month}-{year}"


class _CoinGeckoAdapter(HttpSourceAdapter):
    """Shared CoinGecko plumbing: base URL, key header and /ping probe."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = "",
        base_url: str = COINGECKO_BASE_URL,
    ):
        super().__init__(client, api_key=api_key)
        self.base_url = base_url.rstrip("/")
        self.health_url = f"{self.base_url}/ping"

    def _headers(self) -> dict[str, str]:
        if self.api_key:
            return {COINGECKO_KEY_HEADER: self.api_key}
        return {}

    async def _simple_price(self, coin_id: str, detailed: bool) -> dict[str, Any]:
        params = {"ids": coin_id, "vs_currencies": "usd"}
        if detailed:
            params.update(
                include_market_cap="true",
                include_24hr_vol="true",
                include_24hr_change="true",
            )

        data = await self._get_json(
            f"{self.base_url}/simple/price", params=params, headers=self._headers()
        )
        if not isinstance(data, dict):
            raise self._fail(f"unexpected payload type {type(data).__name__}")

        coin_data = data.get(coin_id)
        if not isinstance(coin_data, dict):
            raise self._fail(f"token {coin_id} not found", coin_id=coin_id)
        return coin_data


class CoinGeckoPriceAdapter(_CoinGeckoAdapter):
    """Primary live price source: keyed, with market metadata."""

    provider_name = "coingecko"

    async def fetch(self, request: PriceRequest) -> PriceRecord:
        coin_data = await self._simple_price(request.coin_id, detailed=True)
        return PriceRecord(
            symbol=request.symbol,
            price_usd=require_positive(self, coin_data.get("usd"), "usd price"),
            timestamp=now_ms(),
            source=self.provider_name,
            market_cap=optional_float(coin_data.get("usd_market_cap")),
            volume_24h=optional_float(coin_data.get("usd_24h_vol")),
            percent_change_24h=optional_float(coin_data.get("usd_24h_change")),
        )


class CoinGeckoPublicPriceAdapter(_CoinGeckoAdapter):
    """Fallback live price source: public endpoint, price only."""

    provider_name = "coingecko-public"

    def __init__(self, client: httpx.AsyncClient, base_url: str = COINGECKO_BASE_URL):
        super().__init__(client, api_key="", base_url=base_url)

    async def fetch(self, request: PriceRequest) -> PriceRecord:
        coin_data = await self._simple_price(request.coin_id, detailed=False)
        return PriceRecord(
            symbol=request.symbol,
            price_usd=require_positive(self, coin_data.get("usd"), "usd price"),
            timestamp=now_ms(),
            source=self.provider_name,
        )


class CoinGeckoHistoricalAdapter(_CoinGeckoAdapter):
    """
    Historical daily price source.

    Sends the API key when configured; without one the public rate limits apply.
    A missing USD price fails the fetch; a missing volume defaults to 0.
    """

    provider_name = "coingecko-history"

    def _section(self, parent: dict[str, Any], name: str) -> dict[str, Any]:
        """Nested object of the history payload; absent means empty."""
        section = parent.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise self._fail(f"malformed {name}: expected object, got {type(section).__name__}")
        return section

    async def fetch(self, request: HistoricalPriceRequest) -> HistoricalPriceRecord:
        data = await self._get_json(
            f"{self.base_url}/coins/{request.coin_id}/history",
            params={"date": to_coingecko_date(request.date), "localization": "false"},
            headers=self._headers(),
        )
        if not isinstance(data, dict):
            raise self._fail(f"unexpected payload type {type(data).__name__}")

        market_data = self._section(data, "market_data")
        current_price = self._section(market_data, "current_price")
        if "usd" not in current_price:
            raise self._fail(
                f"no historical data for {request.symbol} on {request.date}",
                symbol=request.symbol,
                date=request.date,
            )

        total_volume = self._section(market_data, "total_volume")
        return HistoricalPriceRecord(
            symbol=request.symbol,
            date=request.date,
            price_usd=require_positive(self, current_price["usd"], "usd price"),
            volume=optional_float(total_volume.get("usd")) or 0.0,
        )
