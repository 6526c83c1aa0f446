"""HMAC-SHA256 digest primitive with pluggable backends."""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from hmacguard.common.errors import ConfigurationError
from hmacguard.core.keys import SecretKey

DIGEST_SIZE = 32


class HmacContext(ABC):
    """Incremental keyed-digest computation."""

    @abstractmethod
    def update(self, data: bytes) -> None:
        """Feed more input."""

    @abstractmethod
    def finalize(self) -> bytes:
        """Return the 32-byte digest."""


class DigestBackend(ABC):
    """Capability interface for an HMAC-SHA256 implementation."""

    name: str

    @abstractmethod
    def new(self, secret: SecretKey) -> HmacContext:
        """Start a keyed computation."""


class HashlibBackend(DigestBackend):
    """HMAC-SHA256 from the standard library ``hmac`` module."""

    name = "hashlib"

    def new(self, secret: SecretKey) -> HmacContext:
        return _HashlibContext(secret)


class _HashlibContext(HmacContext):
    def __init__(self, secret: SecretKey) -> None:
        self._mac = hmac.new(secret.material, digestmod=hashlib.sha256)

    def update(self, data: bytes) -> None:
        self._mac.update(data)

    def finalize(self) -> bytes:
        return self._mac.digest()


class CryptographyBackend(DigestBackend):
    """HMAC-SHA256 from ``cryptography`` (OpenSSL)."""

    name = "cryptography"

    def new(self, secret: SecretKey) -> HmacContext:
        return _CryptographyContext(secret)


class _CryptographyContext(HmacContext):
    def __init__(self, secret: SecretKey) -> None:
        self._mac = crypto_hmac.HMAC(secret.material, hashes.SHA256())

    def update(self, data: bytes) -> None:
        self._mac.update(data)

    def finalize(self) -> bytes:
        return self._mac.finalize()


_BACKENDS: dict[str, DigestBackend] = {
    HashlibBackend.name: HashlibBackend(),
    CryptographyBackend.name: CryptographyBackend(),
}

DEFAULT_BACKEND: DigestBackend = _BACKENDS[HashlibBackend.name]


def get_backend(name: str | None = None) -> DigestBackend:
    """
    Look up a digest backend by name.

    Args:
        name: Backend name ("hashlib" or "cryptography"); None for the default

    Returns:
        The shared backend instance

    Raises:
        ConfigurationError: If the name is unknown
    """
    if name is None:
        return DEFAULT_BACKEND
    try:
        return _BACKENDS[name]
    except KeyError:
        known = ", ".join(sorted(_BACKENDS))
        raise ConfigurationError(
            f"Unknown HMAC backend {name!r} (expected one of: {known})"
        ) from None


def compute(secret: SecretKey, data: bytes, backend: DigestBackend | None = None) -> bytes:
    """Compute HMAC-SHA256 of ``data`` in a single pass."""
    ctx = (backend or DEFAULT_BACKEND).new(secret)
    ctx.update(data)
    return ctx.finalize()
