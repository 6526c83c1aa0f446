"""Response signing."""

from __future__ import annotations

from hmacguard.core import hexcodec
from hmacguard.core.digest import DigestBackend, compute, get_backend
from hmacguard.core.keys import SecretKey


def compute_response_digest(
    secret: SecretKey,
    body: bytes,
    backend: DigestBackend | None = None,
) -> bytes:
    """HMAC-SHA256 of the exact response body bytes."""
    return compute(secret, body, backend)


def sign(secret: SecretKey, body: bytes, backend: DigestBackend | None = None) -> str:
    """Header value (lowercase hex) for a response body."""
    return hexcodec.encode(compute_response_digest(secret, body, backend))


class ResponseSigner:
    """Response signing bound to one secret, header name and backend."""

    def __init__(
        self,
        secret: SecretKey | str | bytes,
        header_name: str,
        backend: DigestBackend | None = None,
    ) -> None:
        self._secret = SecretKey.coerce(secret)
        self._header_name = header_name
        self._backend = backend or get_backend()

    @property
    def header_name(self) -> str:
        return self._header_name

    def sign(self, body: bytes) -> str:
        return sign(self._secret, body, self._backend)

    def headers_for(self, body: bytes) -> dict[str, str]:
        return {self._header_name: self.sign(body)}
