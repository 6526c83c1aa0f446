"""Authentication outcomes and their HTTP status mapping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hmacguard.common.errors import ErrorCode


class RejectReason(str, Enum):
    """Why a request was rejected."""

    MISSING_HEADER = ErrorCode.MISSING_HEADER
    MALFORMED_HEADER = ErrorCode.MALFORMED_HEADER
    AUTHENTICATION_FAILED = ErrorCode.AUTHENTICATION_FAILED
    BODY_READ_ERROR = ErrorCode.BODY_READ_ERROR


_MESSAGES = {
    RejectReason.MISSING_HEADER: "Missing HMAC header",
    RejectReason.MALFORMED_HEADER: "Malformed HMAC header",
    RejectReason.AUTHENTICATION_FAILED: "Invalid HMAC signature",
    RejectReason.BODY_READ_ERROR: "Failed to read request body",
}


@dataclass(frozen=True)
class AuthOutcome:
    """Result of verifying one request: allowed, or rejected with a reason."""

    reason: RejectReason | None = None

    @classmethod
    def allow(cls) -> AuthOutcome:
        return cls(None)

    @classmethod
    def reject(cls, reason: RejectReason) -> AuthOutcome:
        return cls(reason)

    @property
    def allowed(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str:
        if self.reason is None:
            return "Allowed"
        return _MESSAGES[self.reason]

    def __str__(self) -> str:
        if self.reason is None:
            return "Allowed"
        return f"Rejected({self.reason.name})"


@dataclass(frozen=True)
class StatusPolicy:
    """HTTP status codes applied to each rejection reason."""

    missing_header: int = 401
    malformed_header: int = 400
    authentication_failed: int = 401
    body_read_error: int = 500

    @classmethod
    def forbidden(cls) -> StatusPolicy:
        """Answer every client-side rejection with 403 Forbidden."""
        return cls(
            missing_header=403,
            malformed_header=403,
            authentication_failed=403,
        )

    def status_for(self, reason: RejectReason) -> int:
        return {
            RejectReason.MISSING_HEADER: self.missing_header,
            RejectReason.MALFORMED_HEADER: self.malformed_header,
            RejectReason.AUTHENTICATION_FAILED: self.authentication_failed,
            RejectReason.BODY_READ_ERROR: self.body_read_error,
        }[reason]
