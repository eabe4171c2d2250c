"""
JWKS client for fetching signing key sets from the identity provider.
"""

from typing import Any, Dict, List, Optional, Protocol

import httpx

from shared.errors import KeySetFetchFailed
from shared.logging import get_logger


class KeySetFetcher(Protocol):
    """Retrieves the ordered list of JWKs published at a URL."""

    async def fetch(self, url: str) -> List[Dict[str, Any]]:
        ...


class JWKSClient:
    """HTTP key-set fetcher.

    Every call goes to the network; freshness and caching policy for key sets
    belongs to whoever wraps this client.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.logger = get_logger("auth.jwks")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, url: str) -> List[Dict[str, Any]]:
        """Fetch the JWKS document at ``url`` and return its keys in order."""
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            self.logger.error("Failed to fetch JWKS", url=url, error=str(e))
            raise KeySetFetchFailed(url, str(e)) from e
        except ValueError as e:
            self.logger.error("JWKS response is not JSON", url=url, error=str(e))
            raise KeySetFetchFailed(url, "JWKS response is not valid JSON") from e

        keys = payload.get("keys") if isinstance(payload, dict) else None
        if not isinstance(keys, list):
            raise KeySetFetchFailed(url, "JWKS response missing 'keys' array")

        self.logger.debug("JWKS fetched", url=url, keys_count=len(keys))
        return keys
