"""
Oracle configuration using Pydantic Settings.

Supports hierarchical environment configuration:
- .env.base: Common non-secret defaults (committed to git)
- .env.{ENVIRONMENT}: Environment-specific overrides (gitignored)
- Environment variables: Highest priority
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get environment from env var, default to development
ENV = os.getenv("ENVIRONMENT", "development")


class Settings(BaseSettings):
    """Oracle settings with hierarchical env file support."""

    model_config = SettingsConfigDict(
        # Load base first, then environment-specific override
        env_file=[
            ".env.base",  # Common defaults (committed)
            f".env.{ENV}",  # Environment overrides (gitignored)
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "test", "production"] = "development"
    log_level: str = "INFO"

    # External APIs - Price data
    coingecko_api_key: str = ""  # Demo/pro key; enables the primary price adapter
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"

    # External APIs - Gas data
    etherscan_api_key: str = ""  # Optional, raises Etherscan rate limits
    polygon_rpc_url: str = "https://polygon-rpc.com"

    # Cache settings - TTL values in seconds by data category
    cache_ttl_seconds: float = Field(default=30, gt=0)  # Live prices and gas
    historical_cache_ttl_seconds: float = Field(default=86400, gt=0)  # Past dates
    cache_cleanup_interval_seconds: float = Field(default=300, gt=0)  # Sweeper

    # Timeouts
    http_timeout_seconds: float = Field(default=10.0, gt=0)  # Per upstream call
    resolve_timeout_seconds: float = Field(default=15.0, gt=0)  # Whole chain
    health_probe_timeout_seconds: float = Field(default=5.0, gt=0)

    @property
    def has_coingecko_key(self) -> bool:
        """Check if a CoinGecko API key is configured."""
        return bool(self.coingecko_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
