"""Request verification against the canonical method/path/body digest."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from hmacguard.core import hexcodec
from hmacguard.core.compare import constant_time_equals
from hmacguard.core.digest import DIGEST_SIZE, DigestBackend, compute, get_backend
from hmacguard.core.keys import SecretKey
from hmacguard.core.outcome import AuthOutcome, RejectReason

HEADER_HEX_LENGTH = DIGEST_SIZE * 2

HeaderValue = Union[str, bytes]
HeaderSource = Union[Mapping[str, Any], Iterable[tuple[Any, Any]]]


@dataclass(frozen=True)
class RequestView:
    """The parts of an inbound request covered by the signature."""

    method: str
    path: str
    body: bytes = b""


def compute_request_digest(
    secret: SecretKey,
    method: str,
    path: str,
    body: bytes,
    backend: DigestBackend | None = None,
) -> bytes:
    """
    Compute the canonical request digest.

    ``HMAC(secret, HMAC(secret, method) || HMAC(secret, path) || HMAC(secret, body))``
    """
    backend = backend or get_backend()
    method_digest = compute(secret, method.encode("utf-8"), backend)
    path_digest = compute(secret, path.encode("utf-8"), backend)
    body_digest = compute(secret, body, backend)

    merged = backend.new(secret)
    merged.update(method_digest)
    merged.update(path_digest)
    merged.update(body_digest)
    return merged.finalize()


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return bytes(value).decode("ascii")
        except UnicodeDecodeError:
            return None
    return None


def find_header(headers: HeaderSource, name: str) -> HeaderValue | None:
    """
    Return the first value of header ``name`` (case-insensitive), or None.

    Accepts starlette ``Headers``, plain mappings and iterables of pairs.
    """
    getlist = getattr(headers, "getlist", None)
    if callable(getlist):
        values = getlist(name)
        return values[0] if values else None

    wanted = name.lower()
    items = headers.items() if isinstance(headers, Mapping) else headers
    for key, value in items:
        key_text = _as_text(key)
        if key_text is None or key_text.lower() != wanted:
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                return None
            return value[0]
        return value
    return None


def authenticate(
    secret: SecretKey,
    header_name: str,
    headers: HeaderSource,
    method: str,
    path: str,
    body: bytes,
    backend: DigestBackend | None = None,
) -> AuthOutcome:
    """
    Decide whether a request carries a valid signature header.

    Args:
        secret: Shared secret
        header_name: Name of the signature header
        headers: Request headers
        method: HTTP method as sent (e.g. "GET")
        path: Request path as the client signed it
        body: Raw request body, empty when absent
        backend: Digest backend (defaults to hashlib)

    Returns:
        AuthOutcome, never raising for malformed client input
    """
    raw = find_header(headers, header_name)
    if raw is None:
        return AuthOutcome.reject(RejectReason.MISSING_HEADER)

    supplied_hex = _as_text(raw)
    if supplied_hex is None or len(supplied_hex) != HEADER_HEX_LENGTH:
        return AuthOutcome.reject(RejectReason.MALFORMED_HEADER)

    try:
        supplied = hexcodec.decode(supplied_hex, lowercase_only=True)
    except hexcodec.MalformedHex:
        return AuthOutcome.reject(RejectReason.MALFORMED_HEADER)

    if len(supplied) != DIGEST_SIZE:
        return AuthOutcome.reject(RejectReason.MALFORMED_HEADER)

    expected = compute_request_digest(secret, method, path, body, backend)
    if not constant_time_equals(expected, supplied):
        return AuthOutcome.reject(RejectReason.AUTHENTICATION_FAILED)

    return AuthOutcome.allow()


def authenticate_body_error() -> AuthOutcome:
    """Outcome for a request whose body could not be read."""
    return AuthOutcome.reject(RejectReason.BODY_READ_ERROR)


class RequestAuthenticator:
    """Request verification bound to one secret, header name and backend."""

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

    def authenticate(
        self,
        headers: HeaderSource,
        method: str,
        path: str,
        body: bytes,
    ) -> AuthOutcome:
        return authenticate(
            self._secret,
            self._header_name,
            headers,
            method,
            path,
            body,
            self._backend,
        )

    def authenticate_view(self, headers: HeaderSource, request: RequestView) -> AuthOutcome:
        return self.authenticate(headers, request.method, request.path, request.body)

    def expected_header(self, method: str, path: str, body: bytes = b"") -> str:
        """Header value a client must send for this request."""
        digest = compute_request_digest(self._secret, method, path, body, self._backend)
        return hexcodec.encode(digest)
