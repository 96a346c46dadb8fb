"""
Integration tests for the oracle facade, wiring and lifecycle.

Every upstream is served by one ``httpx.MockTransport`` routing on host, so
the real adapters, resolvers, cache and aggregator run end to end.

Tests cover:
- Token, gas and historical requests through the default chains
- Cache hits on repeated requests
- Partial multi-network gas results
- Health snapshots
- Settings validation and lifecycle management
"""

import asyncio

import httpx
import pytest
from pydantic import ValidationError as PydanticValidationError

from price_oracle.core.config import Settings
from price_oracle.core.exceptions import ResolutionError, ResolutionTimeoutError, ValidationError
from price_oracle.main import oracle_lifespan
from price_oracle.services.oracle import build_oracle

ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"


class FakeUpstreams:
    """Routes requests by host; hosts listed in ``down`` answer 503."""

    def __init__(self, down=()):
        self.down = set(down)
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        self.calls.append(f"{host}{request.url.path}")
        if host in self.down:
            return httpx.Response(503, json={"error": "unavailable"})

        if host == "api.coingecko.com":
            if request.url.path.endswith("/ping"):
                return httpx.Response(200, json={"gecko_says": "ok"})
            if request.url.path.endswith("/history"):
                return httpx.Response(
                    200,
                    json={
                        "market_data": {
                            "current_price": {"usd": 42000.0},
                            "total_volume": {"usd": 1000.0},
                        }
                    },
                )
            return httpx.Response(
                200,
                json={"ethereum": {"usd": 3000.0, "usd_market_cap": 1.0, "usd_24h_vol": 2.0, "usd_24h_change": 0.5}},
            )
        if host == "owlracle.info":
            return httpx.Response(
                200, json={"speeds": [{"acceptance": 90, "gasPrice": 30.0}, {"acceptance": 100, "gasPrice": 40.0}]}
            )
        if host == "polygon-rpc.com":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x6fc23ac00"})
        if host == "api.etherscan.io":
            return httpx.Response(
                200,
                json={
                    "status": "1",
                    "result": {"SafeGasPrice": "10", "ProposeGasPrice": "12", "FastGasPrice": "15"},
                },
            )
        if host == "ethgasstation.info":
            return httpx.Response(200, json={"average": 100, "fast": 120, "fastest": 150})
        return httpx.Response(404)

    def count(self, host: str) -> int:
        return sum(1 for call in self.calls if call.startswith(host))


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def upstreams():
    return FakeUpstreams()


@pytest.fixture
def client(upstreams):
    """Shared client answered by the fake upstreams."""
    return httpx.AsyncClient(transport=httpx.MockTransport(upstreams))


class TestOracleService:
    """Test the facade end to end."""

    @pytest.mark.asyncio
    async def test_token_price_then_cache_hit(self, client, upstreams):
        """Second identical request is served from cache."""
        oracle = build_oracle(make_settings(coingecko_api_key="demo"), client=client)

        first = await oracle.get_token_price("eth")
        second = await oracle.get_token_price("ETH", "polygon")

        assert first.record.source == "coingecko"
        assert first.record.price_usd == 3000.0
        assert "cached" not in first.to_dict()
        assert second.to_dict()["cached"] is True
        assert upstreams.count("api.coingecko.com") == 1

    @pytest.mark.asyncio
    async def test_token_price_falls_back_to_public(self, client):
        """Without a key the public adapter answers."""
        oracle = build_oracle(make_settings(), client=client)

        result = await oracle.get_token_price("ETH")

        assert result.record.source == "coingecko-public"

    @pytest.mark.asyncio
    async def test_gas_price_falls_back_to_rpc(self, client, upstreams):
        """Owlracle down: polygon gas comes from the RPC node."""
        upstreams.down.add("owlracle.info")
        oracle = build_oracle(make_settings(), client=client)

        result = await oracle.get_gas_price("polygon")

        assert result.record.standard == pytest.approx(30.0)
        assert result.record.instant == pytest.approx(45.0)
        assert upstreams.count("owlracle.info") == 1
        assert upstreams.count("polygon-rpc.com") == 1

    @pytest.mark.asyncio
    async def test_historical_price(self, client):
        """Historical price resolves through coingecko-history."""
        oracle = build_oracle(make_settings(), client=client)

        result = await oracle.get_historical_price("BTC", "2024-01-15")

        assert result.to_dict() == {
            "symbol": "BTC",
            "date": "2024-01-15",
            "priceUsd": 42000.0,
            "volume": 1000.0,
        }

    @pytest.mark.asyncio
    async def test_invalid_input_makes_no_requests(self, client, upstreams):
        """Validation errors surface before any upstream call."""
        oracle = build_oracle(make_settings(), client=client)

        with pytest.raises(ValidationError):
            await oracle.get_historical_price("BTC", "15/01/2024")
        with pytest.raises(ValidationError):
            await oracle.get_gas_price("solana")

        assert upstreams.calls == []

    @pytest.mark.asyncio
    async def test_all_ethereum_gas_providers_down(self, client, upstreams):
        """A fully failed chain raises ResolutionError naming both providers."""
        upstreams.down.update({"api.etherscan.io", "ethgasstation.info"})
        oracle = build_oracle(make_settings(), client=client)

        with pytest.raises(ResolutionError) as exc_info:
            await oracle.get_gas_price("ethereum")

        assert exc_info.value.attempted == ["ethgasstation", "etherscan"]

    @pytest.mark.asyncio
    async def test_ethereum_gas_falls_back_to_etherscan(self, client, upstreams):
        """ETH Gas Station answers first; Etherscan only when it is down."""
        oracle = build_oracle(make_settings(), client=client)
        primary = await oracle.get_gas_price("ethereum")

        upstreams.down.add("ethgasstation.info")
        fallback_oracle = build_oracle(make_settings(), client=client)
        fallback = await fallback_oracle.get_gas_price("ethereum")

        assert primary.record.standard == 10.0
        assert fallback.record.instant == 15.0
        assert upstreams.count("ethgasstation.info") == 2
        assert upstreams.count("api.etherscan.io") == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call",
        [
            lambda oracle: oracle.get_token_price("ETH", timeout=0.05),
            lambda oracle: oracle.get_gas_price("ethereum", timeout=0.05),
            lambda oracle: oracle.get_historical_price("BTC", "2024-01-15", timeout=0.05),
        ],
        ids=["token", "gas", "historical"],
    )
    async def test_per_call_timeout_overrides_default(self, upstreams, call):
        """A short per-call deadline fires well before the 15s configured default."""

        async def slow(request):
            await asyncio.sleep(5)
            return upstreams(request)

        slow_client = httpx.AsyncClient(transport=httpx.MockTransport(slow))
        oracle = build_oracle(make_settings(), client=slow_client)

        with pytest.raises(ResolutionTimeoutError):
            await asyncio.wait_for(call(oracle), timeout=2)

    @pytest.mark.asyncio
    async def test_multi_network_partial_result(self, client, upstreams):
        """Polygon fully down: only ethereum is returned."""
        upstreams.down.update({"owlracle.info", "polygon-rpc.com"})
        oracle = build_oracle(make_settings(), client=client)

        results = await oracle.get_multi_network_gas_price()

        assert list(results) == ["ethereum"]
        assert results["ethereum"].record.standard == 10.0

    @pytest.mark.asyncio
    async def test_multi_network_uses_per_network_cache(self, client, upstreams):
        """Networks resolved earlier are served from cache in the aggregate."""
        oracle = build_oracle(make_settings(), client=client)

        await oracle.get_gas_price("ethereum")
        results = await oracle.get_multi_network_gas_price()

        assert results["ethereum"].cached is True
        assert results["polygon"].cached is False
        assert upstreams.count("ethgasstation.info") == 1

    @pytest.mark.asyncio
    async def test_multi_network_unknown_network(self, client):
        """Unknown networks are rejected."""
        oracle = build_oracle(make_settings(), client=client)

        with pytest.raises(ValidationError):
            await oracle.get_multi_network_gas_price(["polygon", "bsc"])

    @pytest.mark.asyncio
    async def test_publish_to_contract(self, client):
        """Published events are echoed and counted in the cache."""
        oracle = build_oracle(make_settings(), client=client)

        event = oracle.publish_to_contract("PriceUpdated", ADDRESS, {"price": 1})

        assert event.to_dict()["data"] == {"price": 1}
        assert oracle.cache.size() == 1

    @pytest.mark.asyncio
    async def test_health_check_all_up(self, client):
        """Every provider reachable: healthy snapshot."""
        oracle = build_oracle(make_settings(coingecko_api_key="demo"), client=client)

        snapshot = await oracle.health_check()

        assert snapshot.healthy
        assert set(snapshot.providers) == {
            "coingecko",
            "coingecko-public",
            "coingecko-history",
            "owlracle",
            "polygon-rpc",
            "etherscan",
            "ethgasstation",
        }
        assert set(snapshot.categories) == {"token_price", "gas_price", "historical_price"}

    @pytest.mark.asyncio
    async def test_health_check_degraded(self, client, upstreams):
        """CoinGecko down takes out both price categories but not gas."""
        upstreams.down.add("api.coingecko.com")
        oracle = build_oracle(make_settings(), client=client)

        snapshot = await oracle.health_check()

        assert snapshot.categories == {
            "token_price": False,
            "gas_price": True,
            "historical_price": False,
        }
        assert not snapshot.healthy


class TestLifecycle:
    """Test start/close and the lifespan context manager."""

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, client):
        """A caller-owned client is not closed by the service."""
        oracle = build_oracle(make_settings(), client=client)
        oracle.start()
        await oracle.close()

        assert not client.is_closed

    @pytest.mark.asyncio
    async def test_lifespan_starts_and_closes(self):
        """Lifespan starts the sweeper and releases the owned client on exit."""
        async with oracle_lifespan(make_settings()) as oracle:
            assert oracle._sweeper.running
            http_client = oracle._http_client
            assert not http_client.is_closed

        assert not oracle._sweeper.running
        assert http_client.is_closed


class TestSettings:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        """Defaults match the documented TTLs and timeouts."""
        settings = make_settings()
        assert settings.cache_ttl_seconds == 30
        assert settings.historical_cache_ttl_seconds == 86400
        assert settings.cache_cleanup_interval_seconds == 300
        assert settings.resolve_timeout_seconds == 15.0
        assert not settings.has_coingecko_key

    @pytest.mark.parametrize(
        "field", ["cache_ttl_seconds", "http_timeout_seconds", "health_probe_timeout_seconds"]
    )
    def test_non_positive_values_rejected(self, field):
        """Zero or negative TTLs and timeouts are invalid."""
        with pytest.raises(PydanticValidationError):
            make_settings(**{field: 0})
