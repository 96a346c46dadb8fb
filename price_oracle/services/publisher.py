"""
Simulated contract event publishing.

Events are validated, stamped with a synthetic transaction hash and block
number, and kept in the shared cache for later inspection. Nothing is signed
or sent to a chain.
"""

import re
import secrets
from collections.abc import Mapping
from typing import Any

import structlog

from ..core.exceptions import ValidationError
from .resolution.cache import MemoryCache
from .resolution.keys import CacheKeys
from .resolution.types import ContractEvent, now_ms

logger = structlog.get_logger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
MAX_EVENT_NAME_LENGTH = 100
BLOCK_NUMBER_BASE = 50_000_000
BLOCK_NUMBER_SPAN = 1_000_000


class ContractEventPublisher:
    """Validates and records simulated contract events."""

    def __init__(self, cache: MemoryCache, ttl_seconds: float | None = None):
        """Events expire with the cache default TTL unless ``ttl_seconds`` is given."""
        self._cache = cache
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _validate(event_name: Any, contract_address: Any, data: Any) -> tuple[str, str]:
        if not isinstance(event_name, str) or not event_name.strip():
            raise ValidationError("Event name is required", field="event_name")
        name = event_name.strip()
        if len(name) > MAX_EVENT_NAME_LENGTH:
            raise ValidationError(
                f"Event name must be at most {MAX_EVENT_NAME_LENGTH} characters",
                field="event_name",
            )

        if not isinstance(contract_address, str) or not ADDRESS_PATTERN.match(
            contract_address.strip()
        ):
            raise ValidationError(
                "Invalid contract address",
                field="contract_address",
                value=contract_address,
            )

        if not isinstance(data, Mapping):
            raise ValidationError("Event data must be an object", field="data")

        return name, contract_address.strip()

    def publish(
        self,
        event_name: str,
        contract_address: str,
        data: Mapping[str, Any],
    ) -> ContractEvent:
        """
        Record a simulated contract event.

        Args:
            event_name: Event name (1-100 characters after trimming)
            contract_address: 0x-prefixed 20-byte hex address
            data: Arbitrary event payload, echoed back unchanged

        Returns:
            The recorded event with its synthetic transaction hash and block

        Raises:
            ValidationError: Any argument is malformed
        """
        name, address = self._validate(event_name, contract_address, data)

        event = ContractEvent(
            event_name=name,
            contract_address=address,
            data=dict(data),
            transaction_hash="0x" + secrets.token_hex(32),
            block_number=BLOCK_NUMBER_BASE + secrets.randbelow(BLOCK_NUMBER_SPAN),
            timestamp=now_ms(),
        )

        key = CacheKeys.contract_event(address, name, event.timestamp)
        self._cache.set(key, event, self.ttl_seconds)

        logger.info(
            "contract_event_published",
            event_name=name,
            contract_address=address,
            transaction_hash=event.transaction_hash,
            block_number=event.block_number,
        )
        return event
