"""
Category resolvers: cache lookup plus an ordered provider fallback chain.

Every resolution follows the same state machine:

    CacheLookup ─ HIT ──────────────────────────────→ return (cached=True)
        └─ MISS → TryAdapter(0) ─ ok ─→ StoreAndReturn (cached=False)
                      └─ fail → TryAdapter(1) ─ ... ─→ AllFailed (ResolutionError)

Adapters are tried strictly one after another; the next adapter never starts
before the previous one has failed. Each failure is accumulated so the final
error names every provider that was tried. The cache is written only after a
complete successful fetch, so a timeout or a total failure leaves it untouched.
"""

import asyncio
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import date as date_type
from typing import Any, Generic, TypeVar

import structlog

from ...core.exceptions import (
    ConfigurationError,
    ResolutionError,
    ResolutionTimeoutError,
    ValidationError,
)
from ..providers.base import SourceAdapter
from .cache import MemoryCache
from .keys import CacheKeys
from .symbols import coingecko_id
from .types import (
    Category,
    GasRecord,
    GasRequest,
    HistoricalPriceRecord,
    HistoricalPriceRequest,
    Network,
    PriceRecord,
    PriceRequest,
    RecordT,
    Resolved,
)

logger = structlog.get_logger(__name__)

RequestT = TypeVar("RequestT")

DEFAULT_NETWORK = Network.POLYGON.value
DEFAULT_RESOLVE_TIMEOUT_SECONDS = 15.0
LIVE_TTL_SECONDS = 30.0
HISTORICAL_TTL_SECONDS = 86400.0
MAX_SYMBOL_LENGTH = 20

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# =============================================================================
# Input normalization (runs once, before any adapter sees the request)
# =============================================================================


def normalize_symbol(symbol: Any) -> str:
    """Strip and uppercase a ticker, rejecting empty or oversized values."""
    if not isinstance(symbol, str):
        raise ValidationError("Symbol must be a string", field="symbol")
    normalized = symbol.strip().upper()
    if not normalized or len(normalized) > MAX_SYMBOL_LENGTH:
        raise ValidationError(
            f"Symbol must be 1-{MAX_SYMBOL_LENGTH} characters",
            field="symbol",
            value=symbol,
        )
    return normalized


def normalize_network(network: Any, supported: Sequence[str] | None = None) -> str:
    """Lowercase a network name and check it against the supported set."""
    if network is None:
        network = DEFAULT_NETWORK
    if not isinstance(network, str):
        raise ValidationError("Network must be a string", field="network")

    normalized = network.strip().lower()
    allowed = list(supported) if supported is not None else [n.value for n in Network]
    if normalized not in allowed:
        raise ValidationError(
            f"Unsupported network: {network}",
            field="network",
            value=network,
            supported=allowed,
        )
    return normalized


def validate_date(value: Any) -> str:
    """Require a real calendar date in YYYY-MM-DD form."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value.strip()):
        raise ValidationError(
            "Date must be in YYYY-MM-DD format", field="date", value=value
        )
    normalized = value.strip()
    try:
        date_type.fromisoformat(normalized)
    except ValueError as e:
        raise ValidationError(
            f"Invalid calendar date: {normalized}", field="date", value=value
        ) from e
    return normalized


# =============================================================================
# Resolver base
# =============================================================================


class CategoryResolver(ABC, Generic[RequestT, RecordT]):
    """
    Cache-then-fallback resolution for one data category.

    Subclasses provide normalization, the cache key scheme and the chain for a
    request. Chain order and TTL are fixed at construction.
    """

    category: Category

    def __init__(
        self,
        cache: MemoryCache,
        ttl_seconds: float,
        timeout_seconds: float = DEFAULT_RESOLVE_TIMEOUT_SECONDS,
    ):
        """
        Initialize resolver.

        Args:
            cache: Shared cache instance
            ttl_seconds: TTL applied to every successful result
            timeout_seconds: Default deadline for one resolution
        """
        if ttl_seconds <= 0:
            raise ConfigurationError("ttl_seconds must be positive", category=self.category.value)
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds

    @abstractmethod
    def normalize(self, **params: Any) -> RequestT:
        """Validate and normalize raw parameters. Raises ValidationError."""

    @abstractmethod
    def cache_key(self, request: RequestT) -> str:
        """Deterministic cache key for a normalized request."""

    @abstractmethod
    def chain_for(self, request: RequestT) -> Sequence[SourceAdapter]:
        """Ordered adapters to try for a normalized request."""

    @abstractmethod
    def providers(self) -> list[SourceAdapter]:
        """Every adapter this resolver may use."""

    @staticmethod
    def _require_chain(chain: Sequence[SourceAdapter], category: Category, **context: Any) -> list[SourceAdapter]:
        if not chain:
            raise ConfigurationError(
                f"Empty provider chain for {category.value}",
                category=category.value,
                **context,
            )
        return list(chain)

    async def resolve(self, timeout: float | None = None, **params: Any) -> Resolved[RecordT]:
        """
        Resolve a request from cache or through the fallback chain.

        Args:
            timeout: Deadline in seconds for the chain walk (resolver default if None)
            **params: Raw request parameters (e.g. symbol, network, date)

        Returns:
            Resolved record with the ``cached`` marker set on cache hits

        Raises:
            ValidationError: Malformed parameters (no I/O performed)
            ResolutionError: Every adapter in the chain failed
            ResolutionTimeoutError: Deadline exceeded before a success
        """
        request = self.normalize(**params)
        key = self.cache_key(request)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("resolution_cache_hit", category=self.category.value, key=key)
            return Resolved(record=cached, cached=True)

        chain = self.chain_for(request)
        deadline = self.timeout_seconds if timeout is None else timeout
        attempted: list[str] = []
        errors: list[str] = []

        try:
            record = await asyncio.wait_for(
                self._walk_chain(request, chain, attempted, errors), timeout=deadline
            )
        except asyncio.TimeoutError:
            logger.warning(
                "resolution_timeout",
                category=self.category.value,
                key=key,
                timeout=deadline,
                attempted=attempted,
            )
            raise ResolutionTimeoutError(
                self.category.value, deadline, attempted=attempted, key=key
            ) from None

        self.cache.set(key, record, self.ttl_seconds)
        return Resolved(record=record, cached=False)

    async def _walk_chain(
        self,
        request: RequestT,
        chain: Sequence[SourceAdapter],
        attempted: list[str],
        errors: list[str],
    ) -> RecordT:
        for adapter in chain:
            name = adapter.provider_name
            attempted.append(name)
            try:
                record = await adapter.fetch(request)
            except Exception as e:
                errors.append(f"{name}: {e}")
                logger.warning(
                    "adapter_failed",
                    category=self.category.value,
                    provider=name,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue

            logger.info(
                "resolution_succeeded",
                category=self.category.value,
                provider=name,
                attempts=len(attempted),
            )
            return record

        logger.error(
            "resolution_failed",
            category=self.category.value,
            attempted=attempted,
        )
        raise ResolutionError(self.category.value, attempted, errors)


# =============================================================================
# Concrete categories
# =============================================================================


class TokenPriceResolver(CategoryResolver[PriceRequest, PriceRecord]):
    """Live token price: short TTL, keyed by symbol and network."""

    category = Category.TOKEN_PRICE

    def __init__(
        self,
        cache: MemoryCache,
        chain: Sequence[SourceAdapter],
        ttl_seconds: float = LIVE_TTL_SECONDS,
        timeout_seconds: float = DEFAULT_RESOLVE_TIMEOUT_SECONDS,
    ):
        super().__init__(cache, ttl_seconds, timeout_seconds)
        self.chain = self._require_chain(chain, self.category)

    def normalize(self, symbol: Any = None, network: Any = None, **_: Any) -> PriceRequest:
        normalized = normalize_symbol(symbol)
        return PriceRequest(
            symbol=normalized,
            coin_id=coingecko_id(normalized),
            network=normalize_network(network),
        )

    def cache_key(self, request: PriceRequest) -> str:
        return CacheKeys.token_price(request.symbol, request.network)

    def chain_for(self, request: PriceRequest) -> Sequence[SourceAdapter]:
        return self.chain

    def providers(self) -> list[SourceAdapter]:
        return list(self.chain)


class GasPriceResolver(CategoryResolver[GasRequest, GasRecord]):
    """
    Network gas price: short TTL, one chain per network.

    Tier ordering (standard <= fast <= instant) is not checked; records are
    returned exactly as the adapter produced them.
    """

    category = Category.GAS_PRICE

    def __init__(
        self,
        cache: MemoryCache,
        chains: Mapping[str, Sequence[SourceAdapter]],
        ttl_seconds: float = LIVE_TTL_SECONDS,
        timeout_seconds: float = DEFAULT_RESOLVE_TIMEOUT_SECONDS,
    ):
        super().__init__(cache, ttl_seconds, timeout_seconds)
        if not chains:
            raise ConfigurationError("No gas networks configured", category=self.category.value)
        self.chains = {
            network.lower(): self._require_chain(chain, self.category, network=network)
            for network, chain in chains.items()
        }

    @property
    def supported_networks(self) -> list[str]:
        """Networks with a configured gas chain."""
        return list(self.chains)

    def normalize(self, network: Any = None, **_: Any) -> GasRequest:
        return GasRequest(network=normalize_network(network, self.supported_networks))

    def cache_key(self, request: GasRequest) -> str:
        return CacheKeys.gas_price(request.network)

    def chain_for(self, request: GasRequest) -> Sequence[SourceAdapter]:
        return self.chains[request.network]

    def providers(self) -> list[SourceAdapter]:
        return [adapter for chain in self.chains.values() for adapter in chain]


class HistoricalPriceResolver(CategoryResolver[HistoricalPriceRequest, HistoricalPriceRecord]):
    """
    Date-scoped token price: long TTL, since a past date's price never changes.

    The date is validated before resolution begins; malformed dates never
    reach an adapter.
    """

    category = Category.HISTORICAL_PRICE

    def __init__(
        self,
        cache: MemoryCache,
        chain: Sequence[SourceAdapter],
        ttl_seconds: float = HISTORICAL_TTL_SECONDS,
        timeout_seconds: float = DEFAULT_RESOLVE_TIMEOUT_SECONDS,
    ):
        super().__init__(cache, ttl_seconds, timeout_seconds)
        self.chain = self._require_chain(chain, self.category)

    def normalize(
        self, symbol: Any = None, date: Any = None, network: Any = None, **_: Any
    ) -> HistoricalPriceRequest:
        validated_date = validate_date(date)
        normalized = normalize_symbol(symbol)
        return HistoricalPriceRequest(
            symbol=normalized,
            coin_id=coingecko_id(normalized),
            date=validated_date,
            network=normalize_network(network),
        )

    def cache_key(self, request: HistoricalPriceRequest) -> str:
        return CacheKeys.historical_price(request.symbol, request.date, request.network)

    def chain_for(self, request: HistoricalPriceRequest) -> Sequence[SourceAdapter]:
        return self.chain

    def providers(self) -> list[SourceAdapter]:
        return list(self.chain)
