"""
Unit tests for the oracle exception hierarchy.

Tests status codes, context handling and serialization of:
- Base AppError
- Client errors (400): ValidationError
- Provider and chain failures (502/503/504)
- ConfigurationError
"""

from price_oracle.core.exceptions import (
    AppError,
    ConfigurationError,
    ResolutionError,
    ResolutionTimeoutError,
    UpstreamError,
    ValidationError,
)


class TestAppError:
    """Test base AppError functionality"""

    def test_create_app_error(self):
        """Test creating base AppError with message"""
        error = AppError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.status_code == 500
        assert error.error_type == "internal_error"
        assert error.context == {}

    def test_to_dict_includes_context(self):
        """Test to_dict merges context keys"""
        error = ValidationError("Bad network", field="network", value="solana")
        assert error.to_dict() == {
            "error_type": "validation_error",
            "message": "Bad network",
            "status_code": 400,
            "field": "network",
            "value": "solana",
        }

    def test_all_errors_are_app_errors(self):
        """Every oracle error can be handled as AppError"""
        errors = [
            ValidationError("x"),
            ConfigurationError("x"),
            UpstreamError("p", "x"),
            ResolutionError("token_price", ["a"]),
            ResolutionTimeoutError("token_price", 1.0),
        ]
        for error in errors:
            assert isinstance(error, AppError)


class TestUpstreamError:
    """Test single-provider failures"""

    def test_message_prefixed_with_provider(self):
        """Provider name leads the message"""
        cause = ValueError("bad json")
        error = UpstreamError("owlracle", "invalid gas data", cause=cause, status=200)
        assert str(error) == "owlracle: invalid gas data"
        assert error.provider == "owlracle"
        assert error.cause is cause
        assert error.status_code == 502
        assert error.context == {"provider": "owlracle", "status": 200}


class TestResolutionErrors:
    """Test whole-chain failures"""

    def test_resolution_error_lists_attempts(self):
        """Message and attributes name every attempted provider"""
        error = ResolutionError(
            "gas_price",
            ["etherscan", "ethgasstation"],
            errors=["etherscan: HTTP 500", "ethgasstation: request failed"],
        )
        assert "gas_price" in str(error)
        assert "etherscan, ethgasstation" in str(error)
        assert error.attempted == ["etherscan", "ethgasstation"]
        assert error.to_dict()["attempted"] == ["etherscan", "ethgasstation"]

    def test_resolution_error_without_attempts(self):
        """An empty attempt list still formats"""
        error = ResolutionError("token_price", [])
        assert "tried: none" in str(error)
        assert error.errors == []

    def test_timeout_is_builtin_timeout(self):
        """Timeouts can be caught as TimeoutError"""
        error = ResolutionTimeoutError("historical_price", 15.0, attempted=["coingecko-history"])
        assert isinstance(error, TimeoutError)
        assert error.status_code == 504
        assert error.attempted == ["coingecko-history"]
        assert "15.0s" in str(error)
