"""Shared error types and the JSON error envelope."""

from __future__ import annotations

from starlette.responses import JSONResponse


class HmacGuardError(Exception):
    """Base class for hmacguard errors."""


class ConfigurationError(HmacGuardError):
    """Invalid or incomplete configuration."""


class BodyReadError(HmacGuardError):
    """The transport failed to deliver the full request body."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ErrorCode:
    MISSING_HEADER = "missing_header"
    MALFORMED_HEADER = "malformed_header"
    AUTHENTICATION_FAILED = "authentication_failed"
    BODY_READ_ERROR = "body_read_error"


def error_response(code: str, message: str, status_code: int) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    return JSONResponse(payload, status_code=status_code)
