"""HTTP client that signs requests and verifies response signatures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote, urlsplit

import aiohttp

from hmacguard.common.logging import get_logger
from hmacguard.core import hexcodec
from hmacguard.core.authenticator import HEADER_HEX_LENGTH, RequestAuthenticator
from hmacguard.core.compare import constant_time_equals
from hmacguard.core.digest import DigestBackend, get_backend
from hmacguard.core.keys import SecretKey
from hmacguard.core.signer import ResponseSigner

logger = get_logger(__name__)


class SignedClientError(Exception):
    """Error sending a signed request."""


@dataclass(frozen=True)
class SignedResponse:
    """Response received from an HMAC-protected server."""

    status: int
    body: bytes
    signature: str | None
    signature_valid: bool

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def signed_path(url: str, include_query: bool = False) -> str:
    """Path component of ``url`` as the server will sign it."""
    parts = urlsplit(url)
    path = unquote(parts.path) or "/"
    if include_query and parts.query:
        path = f"{path}?{parts.query}"
    return path


def verify_response_signature(signer: ResponseSigner, body: bytes, signature: str | None) -> bool:
    """Check a response signature header against the body it arrived with."""
    if signature is None or len(signature) != HEADER_HEX_LENGTH:
        return False
    try:
        supplied = hexcodec.decode(signature, lowercase_only=True)
    except hexcodec.MalformedHex:
        return False
    expected = hexcodec.decode(signer.sign(body))
    return constant_time_equals(expected, supplied)


class SignedClient:
    """
    aiohttp client for servers protected by hmacguard.

    Every request carries the canonical request digest; every response's
    signature header is checked against its body.
    """

    def __init__(
        self,
        secret: SecretKey | str | bytes,
        header_name: str = "x-hmac",
        backend: DigestBackend | None = None,
        include_query: bool = False,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            secret: Shared secret
            header_name: Signature header name
            backend: Digest backend
            include_query: Sign the query string with the path
            timeout: Total request timeout in seconds
        """
        key = SecretKey.coerce(secret)
        backend = backend or get_backend()
        self._authenticator = RequestAuthenticator(key, header_name, backend)
        self._signer = ResponseSigner(key, header_name, backend)
        self._header_name = header_name
        self._include_query = include_query
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> SignedClient:
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def signed_headers(self, method: str, url: str, body: bytes = b"") -> dict[str, str]:
        """Headers to send with a request."""
        path = signed_path(url, self._include_query)
        return {self._header_name: self._authenticator.expected_header(method.upper(), path, body)}

    async def request(
        self,
        method: str,
        url: str,
        body: bytes = b"",
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> SignedResponse:
        """
        Send a signed request.

        Returns:
            SignedResponse with the body and signature check result

        Raises:
            SignedClientError: On transport failure
        """
        method = method.upper()
        all_headers = dict(headers or {})
        all_headers.update(self.signed_headers(method, url, body))

        session = self._ensure_session()
        try:
            response = await session.request(method, url, data=body, headers=all_headers, **kwargs)
        except aiohttp.ClientError as e:
            raise SignedClientError(f"Request failed: {e}") from e

        async with response:
            payload = await response.read()
            signature = response.headers.get(self._header_name)

        valid = verify_response_signature(self._signer, payload, signature)
        if not valid and response.status < 400:
            logger.warning(
                "Response signature did not verify",
                url=url,
                status=response.status,
            )
        return SignedResponse(
            status=response.status,
            body=payload,
            signature=signature,
            signature_valid=valid,
        )
