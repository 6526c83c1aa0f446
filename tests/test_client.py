"""Tests for the signing HTTP client."""

from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from hmacguard.client import (
    SignedClient,
    SignedClientError,
    signed_path,
    verify_response_signature,
)
from hmacguard.core.signer import ResponseSigner

SECRET = "rust :)"
HEADER = "x-hmac"
GET_ROOT_SIGNATURE = "fa64feb94f1d649d435ae6dce009ff0767f57c0f20867dde5f8f6712fea3a7be"
HELLO_SIGNATURE = "ccc7dfe24de0375cc49067576b69ba4d68be554c9f86fb3dadfc053ce84f71a0"


def _mock_response(status: int, body: bytes, headers: dict[str, str]) -> AsyncMock:
    response = AsyncMock()
    response.status = status
    response.headers = headers
    response.read = AsyncMock(return_value=body)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


class TestHelpers:
    """Tests for path and signature helpers."""

    @pytest.mark.parametrize(
        "url,include_query,expected",
        [
            ("http://localhost:8080", False, "/"),
            ("http://localhost:8080/", False, "/"),
            ("http://localhost/a/b?x=1", False, "/a/b"),
            ("http://localhost/a/b?x=1", True, "/a/b?x=1"),
            ("http://localhost/a%20b", False, "/a b"),
        ],
    )
    def test_signed_path(self, url, include_query, expected):
        assert signed_path(url, include_query) == expected

    def test_verify_response_signature(self):
        signer = ResponseSigner(SECRET, HEADER)

        assert verify_response_signature(signer, b"Hello, world!", HELLO_SIGNATURE) is True
        assert verify_response_signature(signer, b"Hello, world?", HELLO_SIGNATURE) is False
        assert verify_response_signature(signer, b"Hello, world!", None) is False
        assert verify_response_signature(signer, b"Hello, world!", HELLO_SIGNATURE.upper()) is False
        assert verify_response_signature(signer, b"Hello, world!", "123") is False

    def test_signed_headers(self):
        client = SignedClient(SECRET, HEADER)
        assert client.signed_headers("get", "http://localhost:8080/") == {HEADER: GET_ROOT_SIGNATURE}


class TestSignedClient:
    """Tests for SignedClient requests."""

    @pytest.mark.asyncio
    async def test_request_sends_signature_and_verifies_response(self):
        async with SignedClient(SECRET, HEADER) as client:
            with patch.object(
                client._ensure_session(), "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.return_value = _mock_response(
                    200, b"Hello, world!", {HEADER: HELLO_SIGNATURE}
                )

                result = await client.request("GET", "http://localhost:8080/")

        assert result.status == 200
        assert result.text == "Hello, world!"
        assert result.signature_valid is True
        _, kwargs = mock_request.call_args
        assert kwargs["headers"][HEADER] == GET_ROOT_SIGNATURE
        assert kwargs["data"] == b""

    @pytest.mark.asyncio
    async def test_request_flags_bad_response_signature(self):
        async with SignedClient(SECRET, HEADER) as client:
            with patch.object(
                client._ensure_session(), "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.return_value = _mock_response(
                    200, b"Tampered", {HEADER: HELLO_SIGNATURE}
                )

                result = await client.request("GET", "http://localhost:8080/")

        assert result.signature_valid is False

    @pytest.mark.asyncio
    async def test_transport_error(self):
        async with SignedClient(SECRET, HEADER) as client:
            with patch.object(
                client._ensure_session(), "request", new_callable=AsyncMock
            ) as mock_request:
                mock_request.side_effect = aiohttp.ClientConnectionError("refused")

                with pytest.raises(SignedClientError):
                    await client.request("GET", "http://localhost:8080/")
