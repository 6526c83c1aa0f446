"""
hmacguard: HMAC-SHA256 request authentication and response signing.

Two cooperating ASGI stages share one secret and one header name: the first
rejects requests whose signature header does not match the canonical digest
of method, path and body; the second signs every response body it sends.
"""

__version__ = "1.0.0"

from hmacguard.core import (
    AuthOutcome,
    RejectReason,
    RequestAuthenticator,
    ResponseSigner,
    SecretKey,
    StatusPolicy,
    authenticate,
    sign,
)

__all__ = [
    "AuthOutcome",
    "RejectReason",
    "RequestAuthenticator",
    "ResponseSigner",
    "SecretKey",
    "StatusPolicy",
    "authenticate",
    "sign",
]
