"""
Unit tests for simulated contract event publishing.

Tests cover:
- Input validation (event name, address, data)
- Synthetic transaction hash and block number
- Echo of caller data and storage in the cache
"""

import re

import pytest

from price_oracle.core.exceptions import ValidationError
from price_oracle.services.publisher import ContractEventPublisher
from price_oracle.services.resolution import CacheKeys, MemoryCache

ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def publisher(cache):
    return ContractEventPublisher(cache)


class TestPublishValidation:
    """Malformed events are rejected."""

    @pytest.mark.parametrize("event_name", ["", "   ", "E" * 101, None])
    def test_invalid_event_name(self, publisher, event_name):
        """Event name must be 1-100 characters after trimming."""
        with pytest.raises(ValidationError) as exc_info:
            publisher.publish(event_name, ADDRESS, {})
        assert exc_info.value.context["field"] == "event_name"

    def test_event_name_at_limit_accepted(self, publisher):
        """Exactly 100 characters is allowed."""
        event = publisher.publish("E" * 100, ADDRESS, {})
        assert len(event.event_name) == 100

    @pytest.mark.parametrize(
        "address",
        [
            "742d35Cc6634C0532925a3b844Bc454e4438f44e",
            "0x742d35",
            "0x742d35Cc6634C0532925a3b844Bc454e4438f44eAA",
            "0xZZ2d35Cc6634C0532925a3b844Bc454e4438f44e",
            None,
        ],
    )
    def test_invalid_address(self, publisher, address):
        """Address must be 0x followed by 40 hex characters."""
        with pytest.raises(ValidationError) as exc_info:
            publisher.publish("PriceUpdated", address, {})
        assert exc_info.value.context["field"] == "contract_address"

    @pytest.mark.parametrize("data", [None, [1, 2], "price=1"])
    def test_data_must_be_mapping(self, publisher, data):
        """Event data must be an object."""
        with pytest.raises(ValidationError):
            publisher.publish("PriceUpdated", ADDRESS, data)


class TestPublish:
    """Accepted events are stamped, stored and echoed."""

    def test_event_fields(self, publisher):
        """Synthetic hash and block number follow the expected shape."""
        event = publisher.publish(" PriceUpdated ", ADDRESS, {"symbol": "ETH", "price": 3000})

        assert event.event_name == "PriceUpdated"
        assert event.contract_address == ADDRESS
        assert event.data == {"symbol": "ETH", "price": 3000}
        assert re.fullmatch(r"0x[0-9a-f]{64}", event.transaction_hash)
        assert 50_000_000 <= event.block_number < 51_000_000
        assert event.timestamp > 0

    def test_hashes_are_unique(self, publisher):
        """Each publish gets its own transaction hash."""
        hashes = {publisher.publish("Ping", ADDRESS, {}).transaction_hash for _ in range(5)}
        assert len(hashes) == 5

    def test_event_stored_in_cache(self, publisher, cache):
        """The event is kept under its contract_event key."""
        event = publisher.publish("PriceUpdated", ADDRESS, {"price": 1})

        key = CacheKeys.contract_event(ADDRESS, "PriceUpdated", event.timestamp)
        assert cache.get(key) == event

    def test_caller_data_copied(self, publisher):
        """Mutating the caller's dict afterwards does not change the event."""
        data = {"price": 1}
        event = publisher.publish("PriceUpdated", ADDRESS, data)
        data["price"] = 2

        assert event.data == {"price": 1}
        assert event.to_dict()["data"] == {"price": 1}
