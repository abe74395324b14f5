"""Shared HTTP plumbing for provider adapters.

Requests go through an ``httpx.AsyncClient`` and are retried with
exponential backoff by tenacity. Once retries are exhausted the error is
raised as ``UpstreamFetchFailure`` so batch callers can record it per item.
"""
import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from wagerbook.core.config import settings
from wagerbook.core.exceptions import UpstreamFetchFailure

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (httpx.HTTPStatusError, httpx.RequestError, httpx.TimeoutException)


class BaseProviderAdapter:
    """
    Base class for provider adapters.

    Attributes:
        source: Provider label used in logs and errors
        max_attempts: Attempts per request before giving up
    """

    source = "provider"

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_attempts: int = 3,
        wait: Optional[wait_base] = None
    ):
        """
        Initialize the adapter.

        Args:
            base_url: Provider API root
            client: Pre-built client (owned by the caller)
            transport: Transport for a client built on demand (tests use httpx.MockTransport)
            max_attempts: Attempts per request
            wait: tenacity wait strategy (default: exponential 2-10s)
        """
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None
        self._transport = transport
        self.max_attempts = max_attempts
        self.wait = wait or wait_exponential(multiplier=1, min=2, max=10)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.HTTP_TIMEOUT),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client if this adapter created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def _get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        expected: type = dict
    ) -> Any:
        """
        GET ``base_url + path`` and decode JSON, retrying transient errors.

        Args:
            path: Path below ``base_url``
            params: Query parameters
            expected: Required top-level JSON type (``dict`` or ``list``)

        Raises:
            UpstreamFetchFailure: After the final failed attempt, or when the
                body is not of the expected type
        """
        url = f"{self.base_url}{path}"
        client = await self._get_client()

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self.wait,
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                reraise=True,
            ):
                with attempt:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
        except RETRYABLE_ERRORS as e:
            logger.error(f"{self.source} request to {url} failed after {self.max_attempts} attempts: {e}")
            raise UpstreamFetchFailure(self.source, str(e)) from e
        except ValueError as e:
            logger.error(f"{self.source} returned invalid JSON from {url}: {e}")
            raise UpstreamFetchFailure(self.source, f"invalid JSON: {e}") from e

        if not isinstance(data, expected):
            logger.error(
                f"{self.source} returned {type(data).__name__} from {url}, expected {expected.__name__}"
            )
            raise UpstreamFetchFailure(
                self.source, f"unexpected payload: {type(data).__name__} instead of {expected.__name__}"
            )
        return data
