"""
Data types for the resolution engine.

These models define the canonical records returned by source adapters and
resolvers. Field names produced by ``to_dict()`` are the JSON boundary shape
consumed by the transport layer and the dashboard, so they stay camelCase.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar


def now_ms() -> int:
    """Current wall-clock time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


class Network(str, Enum):
    """Blockchain networks the oracle accepts."""

    ETHEREUM = "ethereum"
    POLYGON = "polygon"
    BSC = "bsc"
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"


class Category(str, Enum):
    """Requestable fact categories, each with its own chain and TTL."""

    TOKEN_PRICE = "token_price"
    GAS_PRICE = "gas_price"
    HISTORICAL_PRICE = "historical_price"


# =============================================================================
# Normalized requests (built by resolvers, consumed by adapters)
# =============================================================================


@dataclass(frozen=True)
class PriceRequest:
    """Live price request after symbol/network normalization."""

    symbol: str  # Uppercase ticker, e.g. "ETH"
    coin_id: str  # Provider identifier, e.g. "ethereum"
    network: str


@dataclass(frozen=True)
class GasRequest:
    """Gas price request after network normalization."""

    network: str


@dataclass(frozen=True)
class HistoricalPriceRequest:
    """Date-scoped price request after validation."""

    symbol: str
    coin_id: str
    date: str  # YYYY-MM-DD
    network: str


# =============================================================================
# Canonical records
# =============================================================================


@dataclass(frozen=True)
class PriceRecord:
    """Live token price in USD from a single provider."""

    symbol: str
    price_usd: float
    timestamp: int  # ms since epoch
    source: str  # Provider id
    market_cap: float | None = None
    volume_24h: float | None = None
    percent_change_24h: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "symbol": self.symbol,
            "priceUsd": self.price_usd,
            "timestamp": self.timestamp,
            "source": self.source,
        }
        if self.market_cap is not None:
            data["marketCap"] = self.market_cap
        if self.volume_24h is not None:
            data["volume24h"] = self.volume_24h
        if self.percent_change_24h is not None:
            data["percentChange24h"] = self.percent_change_24h
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceRecord":
        """Create from dictionary."""
        return cls(
            symbol=data["symbol"],
            price_usd=float(data["priceUsd"]),
            timestamp=int(data["timestamp"]),
            source=data["source"],
            market_cap=data.get("marketCap"),
            volume_24h=data.get("volume24h"),
            percent_change_24h=data.get("percentChange24h"),
        )


@dataclass(frozen=True)
class GasRecord:
    """
    Gas price tiers for one network, in gwei.

    ``standard <= fast <= instant`` is what adapters aim for, but the values
    are upstream data and are passed through exactly as received.
    """

    network: str
    standard: float
    fast: float
    instant: float
    timestamp: int
    unit: str = "gwei"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "network": self.network,
            "standard": self.standard,
            "fast": self.fast,
            "instant": self.instant,
            "timestamp": self.timestamp,
            "unit": self.unit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GasRecord":
        """Create from dictionary."""
        return cls(
            network=data["network"],
            standard=float(data["standard"]),
            fast=float(data["fast"]),
            instant=float(data["instant"]),
            timestamp=int(data["timestamp"]),
            unit=data.get("unit", "gwei"),
        )


@dataclass(frozen=True)
class HistoricalPriceRecord:
    """Closing USD price and volume of a token on a calendar date."""

    symbol: str
    date: str  # YYYY-MM-DD, no time component
    price_usd: float
    volume: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "date": self.date,
            "priceUsd": self.price_usd,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoricalPriceRecord":
        """Create from dictionary."""
        return cls(
            symbol=data["symbol"],
            date=data["date"],
            price_usd=float(data["priceUsd"]),
            volume=float(data.get("volume", 0.0)),
        )


@dataclass(frozen=True)
class ContractEvent:
    """Simulated contract event. ``data`` is caller-owned and never inspected."""

    event_name: str
    contract_address: str
    data: dict[str, Any]
    transaction_hash: str
    block_number: int
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "eventName": self.event_name,
            "contractAddress": self.contract_address,
            "data": self.data,
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class HealthSnapshot:
    """Point-in-time liveness of providers and categories. Never cached."""

    providers: dict[str, bool]
    categories: dict[str, bool]
    cache_size: int
    generated_at: int = field(default_factory=now_ms)

    @property
    def healthy(self) -> bool:
        """True when every category has at least one live provider."""
        return all(self.categories.values())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "providers": dict(self.providers),
            "categories": dict(self.categories),
            "cacheSize": self.cache_size,
            "generatedAt": self.generated_at,
        }


RecordT = TypeVar("RecordT", PriceRecord, GasRecord, HistoricalPriceRecord)


@dataclass(frozen=True)
class Resolved(Generic[RecordT]):
    """
    A resolver's answer: the record plus whether it came from the cache.

    The ``cached`` marker is attached at return time and is never part of the
    stored value.
    """

    record: RecordT
    cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Record shape, plus ``"cached": true`` for cache hits."""
        data = self.record.to_dict()
        if self.cached:
            data["cached"] = True
        return data
