"""Shared secret key."""

from __future__ import annotations

import hmac
from dataclasses import dataclass, field


@dataclass(frozen=True, eq=False)
class SecretKey:
    """
    Immutable holder of the shared HMAC secret.

    Only the digest backends read ``material``. The repr never shows the key
    so it cannot leak through logs or tracebacks. Equality is constant-time.
    """

    material: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.material, (bytearray, memoryview)):
            object.__setattr__(self, "material", bytes(self.material))
        elif not isinstance(self.material, bytes):
            raise TypeError(
                f"SecretKey material must be bytes-like, not {type(self.material).__name__}"
            )

    @classmethod
    def from_text(cls, text: str) -> SecretKey:
        """Build a key from the UTF-8 encoding of ``text``."""
        return cls(text.encode("utf-8"))

    @classmethod
    def coerce(cls, value: SecretKey | str | bytes | bytearray | memoryview) -> SecretKey:
        """Accept a SecretKey, text or any bytes-like value."""
        if isinstance(value, SecretKey):
            return value
        if isinstance(value, str):
            return cls.from_text(value)
        return cls(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretKey):
            return NotImplemented
        return hmac.compare_digest(self.material, other.material)

    def __hash__(self) -> int:
        return hash((SecretKey, self.material))

    def __len__(self) -> int:
        return len(self.material)

    def __repr__(self) -> str:
        return f"SecretKey(<{len(self.material)} bytes redacted>)"
