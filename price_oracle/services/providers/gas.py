"""
Gas price adapters.

Polygon:
- ``owlracle``: GET https://owlracle.info/poly/gas (speed tiers with acceptance %)
- ``polygon-rpc``: JSON-RPC ``eth_gasPrice`` against the configured RPC URL

Ethereum:
- ``etherscan``: GET https://api.etherscan.io/api?module=gastracker&action=gasoracle
- ``ethgasstation``: GET https://ethgasstation.info/api/ethgasAPI.json

All values are returned in gwei. Tier ordering is whatever the upstream
reports; nothing here reorders tiers.
"""

from typing import Any

import httpx

from ..resolution.types import GasRecord, GasRequest, Network, now_ms
from .base import HttpSourceAdapter, require_positive

OWLRACLE_POLYGON_URL = "https://owlracle.info/poly/gas"
ETHERSCAN_API_URL = "https://api.etherscan.io/api"
ETHGASSTATION_URL = "https://ethgasstation.info/api/ethgasAPI.json"

WEI_PER_GWEI = 1e9

# Multipliers applied to the single eth_gasPrice quote to derive tiers
RPC_FAST_MULTIPLIER = 1.2
RPC_INSTANT_MULTIPLIER = 1.5


class OwlracleGasAdapter(HttpSourceAdapter):
    """
    Polygon gas from Owlracle speed tiers.

    Tier selection:
    - standard: first speed with acceptance >= 90, else the first speed
    - fast: first speed with acceptance >= 95, else the second, else standard
    - instant: the last speed, else fast
    """

    provider_name = "owlracle"
    health_url = OWLRACLE_POLYGON_URL

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = OWLRACLE_POLYGON_URL,
        network: str = Network.POLYGON.value,
    ):
        super().__init__(client)
        self.url = url
        self.health_url = url
        self.network = network

    @staticmethod
    def _first_with_acceptance(speeds: list[dict[str, Any]], threshold: float) -> Any:
        for speed in speeds:
            acceptance = speed.get("acceptance")
            if isinstance(acceptance, int | float) and acceptance >= threshold:
                return speed.get("gasPrice")
        return None

    async def fetch(self, request: GasRequest) -> GasRecord:
        data = await self._get_json(self.url)
        speeds = data.get("speeds") if isinstance(data, dict) else None
        if not isinstance(speeds, list) or not speeds:
            raise self._fail("invalid gas data: no speeds")
        if not all(isinstance(s, dict) for s in speeds):
            raise self._fail("invalid gas data: malformed speed entry")

        standard = self._first_with_acceptance(speeds, 90)
        if standard is None:
            standard = speeds[0].get("gasPrice")

        fast = self._first_with_acceptance(speeds, 95)
        if fast is None and len(speeds) > 1:
            fast = speeds[1].get("gasPrice")
        if fast is None:
            fast = standard

        instant = speeds[-1].get("gasPrice")
        if instant is None:
            instant = fast

        return GasRecord(
            network=self.network,
            standard=require_positive(self, standard, "standard gas price"),
            fast=require_positive(self, fast, "fast gas price"),
            instant=require_positive(self, instant, "instant gas price"),
            timestamp=now_ms(),
        )


class JsonRpcGasAdapter(HttpSourceAdapter):
    """
    Gas from a node's ``eth_gasPrice``.

    The node returns one price; fast and instant are derived from it with
    fixed multipliers. The probe calls ``eth_chainId`` instead.
    """

    provider_name = "polygon-rpc"

    def __init__(
        self,
        client: httpx.AsyncClient,
        rpc_url: str,
        network: str = Network.POLYGON.value,
        provider_name: str | None = None,
    ):
        super().__init__(client)
        self.rpc_url = rpc_url
        self.network = network
        if provider_name:
            self.provider_name = provider_name

    async def _call(self, method: str) -> Any:
        data = await self._post_json(
            self.rpc_url,
            json={"jsonrpc": "2.0", "method": method, "params": [], "id": 1},
        )
        if not isinstance(data, dict):
            raise self._fail(f"unexpected payload type {type(data).__name__}")
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise self._fail(f"RPC method error: {message}")
        if "result" not in data:
            raise self._fail("RPC response missing result")
        return data["result"]

    async def fetch(self, request: GasRequest) -> GasRecord:
        result = await self._call("eth_gasPrice")
        try:
            wei = int(result, 16)
        except (TypeError, ValueError) as e:
            raise self._fail(f"invalid eth_gasPrice result: {result!r}", cause=e) from e

        gwei = wei / WEI_PER_GWEI
        # Positivity is checked on the rounded tiers; sub-0.005 gwei rounds to zero
        return GasRecord(
            network=self.network,
            standard=require_positive(self, round(gwei, 2), "gas price"),
            fast=require_positive(self, round(gwei * RPC_FAST_MULTIPLIER, 2), "fast gas price"),
            instant=require_positive(
                self, round(gwei * RPC_INSTANT_MULTIPLIER, 2), "instant gas price"
            ),
            timestamp=now_ms(),
        )

    async def _probe(self) -> bool:
        await self._call("eth_chainId")
        return True


class EtherscanGasAdapter(HttpSourceAdapter):
    """Ethereum gas from the Etherscan gas oracle (Safe/Propose/Fast)."""

    provider_name = "etherscan"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = "",
        url: str = ETHERSCAN_API_URL,
    ):
        super().__init__(client, api_key=api_key)
        self.url = url

    def _params(self, module: str, action: str) -> dict[str, str]:
        params = {"module": module, "action": action}
        if self.api_key:
            params["apikey"] = self.api_key
        return params

    async def fetch(self, request: GasRequest) -> GasRecord:
        data = await self._get_json(self.url, params=self._params("gastracker", "gasoracle"))
        if not isinstance(data, dict):
            raise self._fail(f"unexpected payload type {type(data).__name__}")
        if data.get("status") != "1":
            raise self._fail(f"Etherscan API error: {data.get('message')}")

        result = data.get("result")
        if not isinstance(result, dict):
            raise self._fail("Etherscan response missing result")

        return GasRecord(
            network=Network.ETHEREUM.value,
            standard=require_positive(self, result.get("SafeGasPrice"), "SafeGasPrice"),
            fast=require_positive(self, result.get("ProposeGasPrice"), "ProposeGasPrice"),
            instant=require_positive(self, result.get("FastGasPrice"), "FastGasPrice"),
            timestamp=now_ms(),
        )

    async def _probe(self) -> bool:
        response = await self.client.get(self.url, params=self._params("proxy", "eth_blockNumber"))
        return response.is_success


class EthGasStationAdapter(HttpSourceAdapter):
    """Ethereum gas from ETH Gas Station; upstream values are tenths of gwei."""

    provider_name = "ethgasstation"
    health_url = ETHGASSTATION_URL

    def __init__(self, client: httpx.AsyncClient, url: str = ETHGASSTATION_URL):
        super().__init__(client)
        self.url = url
        self.health_url = url

    async def fetch(self, request: GasRequest) -> GasRecord:
        data = await self._get_json(self.url)
        if not isinstance(data, dict):
            raise self._fail(f"unexpected payload type {type(data).__name__}")

        return GasRecord(
            network=Network.ETHEREUM.value,
            standard=require_positive(self, data.get("average"), "average") / 10,
            fast=require_positive(self, data.get("fast"), "fast") / 10,
            instant=require_positive(self, data.get("fastest"), "fastest") / 10,
            timestamp=now_ms(),
        )
