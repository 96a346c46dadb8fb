"""
Base class for upstream source adapters.

Provides the shared plumbing every provider adapter needs:
- HTTP client management (shared, injectable client with connection pooling)
- One-shot JSON GET/POST that turns every failure into ``UpstreamError``
- API key sanitization before anything reaches a log line or an error
- A never-raising liveness probe
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

from ...core.exceptions import UpstreamError

logger = structlog.get_logger(__name__)

DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0


def create_http_client(timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS) -> httpx.AsyncClient:
    """Create the pooled HTTP client shared by all adapters."""
    return httpx.AsyncClient(
        timeout=timeout_seconds,
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        headers={"Accept": "application/json"},
    )


@runtime_checkable
class SourceAdapter(Protocol):
    """Capability every provider adapter implements."""

    @property
    def provider_name(self) -> str: ...

    async def fetch(self, request: Any) -> Any:
        """Perform exactly one upstream call and return a canonical record."""
        ...

    async def is_healthy(self) -> bool:
        """Cheap liveness probe. Never raises."""
        ...


class HttpSourceAdapter(ABC):
    """
    Base class for adapters that talk JSON over HTTP.

    Subclasses set ``provider_name`` and implement ``fetch``. ``is_healthy``
    defaults to a GET against ``health_url``; subclasses with a better probe
    override ``_probe``.
    """

    provider_name: str = "unknown"
    health_url: str | None = None

    # Class-level compiled regex pattern for API key sanitization
    _API_KEY_PATTERN = re.compile(
        r"((?:api[_-]?key|x-cg-demo-api-key)[=:\s\"']+)[A-Za-z0-9_\-]{8,}",
        flags=re.IGNORECASE,
    )

    def __init__(self, client: httpx.AsyncClient, api_key: str = ""):
        """
        Initialize adapter with a shared HTTP client.

        Args:
            client: httpx AsyncClient (owned by the caller)
            api_key: Optional provider API key
        """
        self.client = client
        self.api_key = api_key

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider_name!r})"

    def _sanitize_text(self, text: str) -> str:
        """Remove API key from text strings before logging or raising exceptions."""
        if self.api_key:
            text = text.replace(self.api_key, "****")
        return self._API_KEY_PATTERN.sub(r"\1****", text)

    def _fail(self, message: str, cause: BaseException | None = None, **context: Any) -> UpstreamError:
        """Build an UpstreamError for this provider with a sanitized message."""
        return UpstreamError(
            self.provider_name, self._sanitize_text(message), cause=cause, **context
        )

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Perform a single HTTP call and decode the JSON body.

        Raises:
            UpstreamError: On transport errors, non-2xx status, or a non-JSON body
        """
        try:
            response = await self.client.request(
                method, url, params=params, headers=headers, json=json
            )
        except httpx.HTTPError as e:
            raise self._fail(f"request failed: {type(e).__name__}: {e}", cause=e) from e

        if not response.is_success:
            raise self._fail(
                f"HTTP {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise self._fail("response body is not valid JSON", cause=e) from e

    async def _get_json(self, url: str, **kwargs: Any) -> Any:
        return await self._request_json("GET", url, **kwargs)

    async def _post_json(self, url: str, **kwargs: Any) -> Any:
        return await self._request_json("POST", url, **kwargs)

    @abstractmethod
    async def fetch(self, request: Any) -> Any:
        """Perform exactly one upstream call and return a canonical record."""

    async def _probe(self) -> bool:
        """Default probe: GET ``health_url`` and check for a 2xx status."""
        if not self.health_url:
            return False
        response = await self.client.get(self.health_url)
        return response.is_success

    async def is_healthy(self) -> bool:
        """Liveness probe that resolves to a boolean and never raises."""
        try:
            return await self._probe()
        except Exception as e:
            logger.debug(
                "provider_probe_failed",
                provider=self.provider_name,
                error=self._sanitize_text(str(e)),
            )
            return False


def require_positive(adapter: HttpSourceAdapter, value: Any, field: str) -> float:
    """
    Coerce an upstream number to a positive float.

    Missing, non-numeric, or non-positive values are load-bearing failures,
    never defaulted to zero.
    """
    if value is None or isinstance(value, bool):
        raise adapter._fail(f"missing {field}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise adapter._fail(f"non-numeric {field}: {value!r}", cause=e) from e
    if not number > 0:
        raise adapter._fail(f"non-positive {field}: {number}")
    return number


def optional_float(value: Any) -> float | None:
    """Coerce an optional upstream number, dropping anything unparseable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
