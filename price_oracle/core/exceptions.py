"""
Custom exception hierarchy for the oracle's resolution engine.

Errors map onto the outcome a caller has to tell apart:
- Client errors (400-level): the request itself is malformed
- Upstream errors (502): a single provider call failed
- Resolution errors (503/504): a whole fallback chain failed or ran out of time

Usage:
    from price_oracle.core.exceptions import ResolutionError, ValidationError

    # Bad input → never reaches a provider
    raise ValidationError("Invalid date format", field="date", value="2024/01/01")

    # Every provider in the chain failed
    raise ResolutionError("token_price", attempted=["coingecko", "coingecko-public"])
"""

from typing import Any


class AppError(Exception):
    """
    Base application error with HTTP status mapping.

    All custom exceptions inherit from this to enable consistent error handling
    in whatever transport layer sits on top of the oracle.
    """

    # Default status code (subclasses override)
    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, **context: Any):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional key-value pairs for logging (e.g., symbol, network)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON response and structured logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }


# ===== 400-level: Client Errors =====


class ValidationError(AppError):
    """Caller provided invalid input (e.g., malformed date, unsupported network)."""

    status_code = 400
    error_type = "validation_error"


# ===== 500-level: Server Errors =====


class ConfigurationError(AppError):
    """
    Oracle misconfigured (e.g., empty fallback chain, invalid settings).

    Should be caught during construction, not during request handling.
    """

    status_code = 500
    error_type = "configuration_error"


# ===== 502/503/504: Upstream Errors =====


class UpstreamError(AppError):
    """
    A single provider call failed.

    Raised by source adapters when the upstream returns a non-success status,
    a structurally unexpected payload, or does not know the requested entity.
    Resolvers catch it and move on to the next adapter in the chain.
    """

    status_code = 502
    error_type = "upstream_error"

    def __init__(
        self,
        provider: str,
        message: str,
        cause: BaseException | None = None,
        **context: Any,
    ):
        """
        Initialize with provider name for easier debugging.

        Args:
            provider: Provider identifier (e.g., "coingecko", "owlracle")
            message: Error description
            cause: Underlying exception, if any
            **context: Additional context (e.g., status, symbol)
        """
        super().__init__(f"{provider}: {message}", provider=provider, **context)
        self.provider = provider
        self.cause = cause


class ResolutionError(AppError):
    """
    Every adapter in a category's fallback chain failed.

    Carries the category and the providers that were tried, in order,
    so a failed resolution can be diagnosed from the error alone.
    """

    status_code = 503
    error_type = "resolution_error"

    def __init__(
        self,
        category: str,
        attempted: list[str],
        errors: list[str] | None = None,
        **context: Any,
    ):
        tried = ", ".join(attempted) if attempted else "none"
        detail = f": {'; '.join(errors)}" if errors else ""
        super().__init__(
            f"All providers failed for {category} (tried: {tried}){detail}",
            category=category,
            attempted=list(attempted),
            **context,
        )
        self.category = category
        self.attempted = list(attempted)
        self.errors = list(errors or [])


class ResolutionTimeoutError(AppError, TimeoutError):
    """Resolution exceeded its deadline before any adapter succeeded."""

    status_code = 504
    error_type = "timeout_error"

    def __init__(
        self,
        category: str,
        timeout_seconds: float,
        attempted: list[str] | None = None,
        **context: Any,
    ):
        super().__init__(
            f"Resolution of {category} timed out after {timeout_seconds}s",
            category=category,
            timeout_seconds=timeout_seconds,
            attempted=list(attempted or []),
            **context,
        )
        self.category = category
        self.timeout_seconds = timeout_seconds
        self.attempted = list(attempted or [])
