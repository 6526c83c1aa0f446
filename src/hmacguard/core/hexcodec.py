"""Hex encoding for digests carried in headers."""

from __future__ import annotations

import re

from hmacguard.common.errors import HmacGuardError

_HEX_ANY_CASE = re.compile(r"[0-9a-fA-F]*")
_HEX_LOWER = re.compile(r"[0-9a-f]*")


class MalformedHex(HmacGuardError, ValueError):
    """Input is not a valid hex string."""


def encode(data: bytes) -> str:
    """Encode bytes as lowercase hex without prefix or separators."""
    return data.hex()


def decode(text: str, lowercase_only: bool = False) -> bytes:
    """
    Decode a hex string.

    Args:
        text: Hex digits, two per byte
        lowercase_only: Reject uppercase digits

    Returns:
        Decoded bytes

    Raises:
        MalformedHex: On odd length or any non-hex character
    """
    if len(text) % 2:
        raise MalformedHex("Hex string has odd length")
    pattern = _HEX_LOWER if lowercase_only else _HEX_ANY_CASE
    # bytes.fromhex skips whitespace, so validate the alphabet first
    if not pattern.fullmatch(text):
        raise MalformedHex("Hex string contains invalid characters")
    return bytes.fromhex(text)
