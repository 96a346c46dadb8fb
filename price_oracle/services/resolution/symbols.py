"""Ticker → CoinGecko coin id mapping."""

COINGECKO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "MATIC": "matic-network",
    "POL": "polygon-ecosystem-token",
    "USDC": "usd-coin",
    "USDT": "tether",
    "DAI": "dai",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "AAVE": "aave",
}


def coingecko_id(symbol: str) -> str:
    """Map a ticker to its CoinGecko id; unknown tickers pass through lowercased."""
    normalized = symbol.upper()
    return COINGECKO_IDS.get(normalized, normalized.lower())
