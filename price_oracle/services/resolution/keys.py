"""
Cache key generators for the resolution engine.

All cache keys follow the convention: {category}:{param}:{param}:...

This module provides consistent key generation to ensure:
- The same logical request always maps to the same key
- No two distinct requests collide (parts are escaped before joining)
- Easy pattern matching by category prefix
"""

from urllib.parse import quote, unquote


class CacheKeys:
    """
    Cache key generators for consistent naming across resolvers.

    Key Convention:
        {category}:{param1}:{param2}:...

    Examples:
        token_price:ETH:polygon
        gas_price:ethereum
        historical_price:BTC:2024-01-15:polygon
        contract_event:0xabc...:PriceUpdated:1718000000000
    """

    SEPARATOR = ":"

    # Category prefixes
    TOKEN_PRICE = "token_price"
    GAS_PRICE = "gas_price"
    HISTORICAL_PRICE = "historical_price"
    CONTRACT_EVENT = "contract_event"

    @staticmethod
    def build(*parts: object) -> str:
        """
        Join a category discriminator and its parameters into a key.

        Each part is percent-escaped so a separator inside a parameter
        cannot shift the boundary between parts.

        Args:
            *parts: Category first, then every parameter affecting the result

        Returns:
            Cache key like 'token_price:ETH:polygon'
        """
        return CacheKeys.SEPARATOR.join(quote(str(part), safe="") for part in parts)

    @staticmethod
    def token_price(symbol: str, network: str) -> str:
        """
        Generate cache key for live token price data.

        Args:
            symbol: Token symbol (already normalized, uppercase)
            network: Network name

        Returns:
            Cache key like 'token_price:ETH:polygon'
        """
        return CacheKeys.build(CacheKeys.TOKEN_PRICE, symbol, network)

    @staticmethod
    def gas_price(network: str) -> str:
        """
        Generate cache key for gas price data.

        Args:
            network: Network name

        Returns:
            Cache key like 'gas_price:polygon'
        """
        return CacheKeys.build(CacheKeys.GAS_PRICE, network)

    @staticmethod
    def historical_price(symbol: str, date: str, network: str) -> str:
        """
        Generate cache key for a historical (date-scoped) price.

        Args:
            symbol: Token symbol (already normalized, uppercase)
            date: Calendar date in YYYY-MM-DD format
            network: Network name

        Returns:
            Cache key like 'historical_price:BTC:2024-01-15:polygon'
        """
        return CacheKeys.build(CacheKeys.HISTORICAL_PRICE, symbol, date, network)

    @staticmethod
    def contract_event(contract_address: str, event_name: str, timestamp: int) -> str:
        """
        Generate cache key for a simulated contract event.

        Returns:
            Cache key like 'contract_event:0xabc...:PriceUpdated:1718000000000'
        """
        return CacheKeys.build(
            CacheKeys.CONTRACT_EVENT, contract_address, event_name, timestamp
        )

    @staticmethod
    def parse(key: str) -> dict[str, str | list[str]]:
        """
        Parse a cache key into its components.

        Args:
            key: Cache key to parse

        Returns:
            Dict with category and unescaped params
        """
        category, *params = key.split(CacheKeys.SEPARATOR)
        return {
            "category": unquote(category),
            "params": [unquote(p) for p in params],
        }

