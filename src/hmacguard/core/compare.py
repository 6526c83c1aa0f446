"""Constant-time digest comparison."""

import hmac


def constant_time_equals(a: bytes, b: bytes) -> bool:
    """Compare two byte strings without leaking where they differ."""
    # Lengths are public; only contents must be compared in constant time.
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a, b)
