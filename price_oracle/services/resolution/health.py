"""
Health reporting for providers, categories and the cache.

Every provider is probed concurrently and independently: a probe that raises
or hangs past its timeout counts as unhealthy and never affects another
provider's result. Snapshots are always computed fresh.
"""

import asyncio
from collections.abc import Mapping, Sequence

import structlog

from ..providers.base import SourceAdapter
from .cache import MemoryCache
from .types import HealthSnapshot

logger = structlog.get_logger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


class HealthReporter:
    """Builds ``HealthSnapshot``s from provider probes and cache occupancy."""

    def __init__(
        self,
        categories: Mapping[str, Sequence[SourceAdapter]],
        cache: MemoryCache,
        probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    ):
        """
        Initialize health reporter.

        Args:
            categories: Category name -> adapters serving it
            cache: Cache whose size is reported
            probe_timeout_seconds: Upper bound for a single probe
        """
        self._categories = {name: list(chain) for name, chain in categories.items()}
        self._cache = cache
        self.probe_timeout_seconds = probe_timeout_seconds

        # Distinct adapters by provider name, first-seen order
        self._adapters: dict[str, SourceAdapter] = {}
        for chain in self._categories.values():
            for adapter in chain:
                self._adapters.setdefault(adapter.provider_name, adapter)

    @property
    def provider_names(self) -> list[str]:
        return list(self._adapters)

    async def _probe(self, name: str, adapter: SourceAdapter) -> bool:
        try:
            return bool(
                await asyncio.wait_for(adapter.is_healthy(), timeout=self.probe_timeout_seconds)
            )
        except Exception as e:
            logger.warning(
                "health_probe_error",
                provider=name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return False

    async def snapshot(self) -> HealthSnapshot:
        """Probe every provider now and report per-provider and per-category liveness."""
        names = list(self._adapters)
        results = await asyncio.gather(
            *(self._probe(name, self._adapters[name]) for name in names)
        )
        providers = dict(zip(names, results))

        categories = {
            category: any(providers[adapter.provider_name] for adapter in chain)
            for category, chain in self._categories.items()
        }

        snapshot = HealthSnapshot(
            providers=providers,
            categories=categories,
            cache_size=self._cache.size(),
        )

        if snapshot.healthy:
            logger.info("health_check_passed", providers=providers)
        else:
            logger.warning("health_check_degraded", providers=providers, categories=categories)
        return snapshot
