"""Signing and verification protocol."""

from hmacguard.core.authenticator import (
    RequestAuthenticator,
    RequestView,
    authenticate,
    authenticate_body_error,
    compute_request_digest,
)
from hmacguard.core.digest import (
    DIGEST_SIZE,
    CryptographyBackend,
    DigestBackend,
    HashlibBackend,
    get_backend,
)
from hmacguard.core.keys import SecretKey
from hmacguard.core.outcome import AuthOutcome, RejectReason, StatusPolicy
from hmacguard.core.signer import ResponseSigner, compute_response_digest, sign

__all__ = [
    "DIGEST_SIZE",
    "AuthOutcome",
    "CryptographyBackend",
    "DigestBackend",
    "HashlibBackend",
    "RejectReason",
    "RequestAuthenticator",
    "RequestView",
    "ResponseSigner",
    "SecretKey",
    "StatusPolicy",
    "authenticate",
    "authenticate_body_error",
    "compute_request_digest",
    "compute_response_digest",
    "get_backend",
    "sign",
]
