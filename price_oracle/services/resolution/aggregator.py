"""
Multi-target aggregation: one category, several independent targets at once.

Each target resolves concurrently in its own failure domain. A failed target
is logged and left out of the result; it never cancels or fails the others.
Callers check which keys are present to see what succeeded.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any

import structlog

from ...core.exceptions import ValidationError
from .types import Resolved

logger = structlog.get_logger(__name__)


class MultiTargetAggregator:
    """
    Fan a single-target resolve function out across a fixed set of targets.

    Usage:
        aggregator = MultiTargetAggregator(
            lambda network: gas_resolver.resolve(network=network),
            targets=["polygon", "ethereum"],
        )
        results = await aggregator.resolve_all()  # {"polygon": Resolved, ...}
    """

    def __init__(
        self,
        resolve_one: Callable[[str], Awaitable[Resolved[Any]]],
        targets: Sequence[str],
        name: str = "multi_target",
    ):
        """
        Initialize aggregator.

        Args:
            resolve_one: Coroutine function resolving a single target
            targets: Known target set (e.g. networks)
            name: Label used in log events
        """
        self._resolve_one = resolve_one
        self.targets = self._normalize(targets)
        self.name = name

    @staticmethod
    def _normalize(targets: Iterable[str]) -> list[str]:
        """Trimmed, lowercased, de-duplicated target names in request order."""
        # A bare string is iterable but is one name, not a list of them
        if isinstance(targets, str):
            raise ValidationError(
                "Targets must be a collection of names, not a single string",
                field="targets",
                value=targets,
            )
        names = []
        for target in targets:
            if not isinstance(target, str):
                raise ValidationError(
                    f"Target names must be strings, got {type(target).__name__}",
                    field="targets",
                )
            names.append(target.strip().lower())
        return list(dict.fromkeys(names))

    async def resolve_all(self, targets: Iterable[str] | None = None) -> dict[str, Resolved[Any]]:
        """
        Resolve every requested target concurrently.

        Names are matched case-insensitively and ignoring surrounding
        whitespace; results are keyed by the normalized name.

        Args:
            targets: Subset of the known targets (all of them if None)

        Returns:
            Mapping of target -> Resolved for the targets that succeeded only

        Raises:
            ValidationError: A requested target is outside the known set, or
                ``targets`` is a single string rather than a collection
        """
        requested = self.targets if targets is None else self._normalize(targets)
        unknown = [t for t in requested if t not in self.targets]
        if unknown:
            raise ValidationError(
                f"Unknown targets: {', '.join(unknown)}",
                field="targets",
                supported=self.targets,
            )

        outcomes = await asyncio.gather(
            *(self._resolve_one(target) for target in requested),
            return_exceptions=True,
        )

        results: dict[str, Resolved[Any]] = {}
        failed: list[str] = []
        for target, outcome in zip(requested, outcomes):
            if isinstance(outcome, BaseException):
                failed.append(target)
                logger.warning(
                    "target_resolution_failed",
                    aggregator=self.name,
                    target=target,
                    error_type=type(outcome).__name__,
                    error=str(outcome),
                )
                continue
            results[target] = outcome

        logger.info(
            "multi_target_resolved",
            aggregator=self.name,
            succeeded=list(results),
            failed=failed,
        )
        return results
