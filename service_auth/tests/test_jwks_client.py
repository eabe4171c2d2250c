"""
Unit tests for JWKSClient.
"""

import pytest
import httpx

from service_auth.app.jwks.client import JWKSClient
from shared.errors import ExternalServiceError, KeySetFetchFailed

JWKS_URL = "https://example.auth0.com/.well-known/jwks.json"


def make_client(handler) -> JWKSClient:
    return JWKSClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestJWKSClient:
    """Test cases for JWKSClient."""

    @pytest.fixture
    def mock_jwks_data(self):
        """Mock JWKS data."""
        return {
            "keys": [
                {"kty": "RSA", "kid": "mock-key-1", "use": "sig", "n": "mock-n", "e": "AQAB", "alg": "RS256"},
                {"kty": "RSA", "kid": "mock-key-2", "use": "sig", "n": "mock-n", "e": "AQAB", "alg": "RS256"},
            ]
        }

    @pytest.mark.asyncio
    async def test_fetch_success(self, mock_jwks_data):
        """Keys come back in document order."""
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, json=mock_jwks_data)

        client = make_client(handler)

        keys = await client.fetch(JWKS_URL)

        assert [key["kid"] for key in keys] == ["mock-key-1", "mock-key-2"]
        assert requested == [JWKS_URL]

    @pytest.mark.asyncio
    async def test_fetch_is_not_cached(self, mock_jwks_data):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=mock_jwks_data)

        client = make_client(handler)

        await client.fetch(JWKS_URL)
        await client.fetch(JWKS_URL)

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_fetch_http_status_error(self):
        client = make_client(lambda request: httpx.Response(503))

        with pytest.raises(KeySetFetchFailed) as exc_info:
            await client.fetch(JWKS_URL)

        assert exc_info.value.code == "KEY_SET_FETCH_FAILED"
        assert exc_info.value.details["url"] == JWKS_URL
        assert isinstance(exc_info.value, ExternalServiceError)

    @pytest.mark.asyncio
    async def test_fetch_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(KeySetFetchFailed):
            await client.fetch(JWKS_URL)

    @pytest.mark.asyncio
    async def test_fetch_invalid_json(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(KeySetFetchFailed):
            await client.fetch(JWKS_URL)

    @pytest.mark.asyncio
    async def test_fetch_missing_keys(self):
        client = make_client(lambda request: httpx.Response(200, json={"issuer": "x"}))

        with pytest.raises(KeySetFetchFailed) as exc_info:
            await client.fetch(JWKS_URL)

        assert "keys" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, mock_jwks_data):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=mock_jwks_data)))
        client = JWKSClient(client=http_client)

        await client.close()

        assert http_client.is_closed is False
        await http_client.aclose()
