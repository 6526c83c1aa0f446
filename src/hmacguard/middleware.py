"""Starlette middleware for HMAC request verification and response signing."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response
from starlette.types import ASGIApp

from hmacguard.common.errors import BodyReadError, error_response
from hmacguard.common.logging import get_logger
from hmacguard.common.metrics import record_auth_outcome, record_signed_response
from hmacguard.common.settings import Settings
from hmacguard.core.authenticator import RequestAuthenticator, authenticate_body_error
from hmacguard.core.digest import DigestBackend, get_backend
from hmacguard.core.keys import SecretKey
from hmacguard.core.outcome import AuthOutcome, StatusPolicy
from hmacguard.core.signer import ResponseSigner

logger = get_logger(__name__)

DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


def request_path(request: Request, include_query: bool = False) -> str:
    """Path component covered by the request signature."""
    path = request.url.path
    if include_query and request.url.query:
        path = f"{path}?{request.url.query}"
    return path


async def read_body(request: Request, max_body_bytes: int | None = None) -> bytes:
    """
    Read the full request body.

    Reading stops at the first chunk that takes the body past ``max_body_bytes``.
    The body is cached on the request, so downstream handlers see the same bytes.

    Raises:
        BodyReadError: If the client disconnected or the body exceeds the limit
    """
    if max_body_bytes is not None:
        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > max_body_bytes:
            raise BodyReadError(f"Request body exceeds {max_body_bytes} bytes")

    chunks: list[bytes] = []
    received = 0
    try:
        async for chunk in request.stream():
            received += len(chunk)
            if max_body_bytes is not None and received > max_body_bytes:
                raise BodyReadError(f"Request body exceeds {max_body_bytes} bytes")
            chunks.append(chunk)
    except ClientDisconnect as exc:
        raise BodyReadError("Client disconnected while sending body", cause=exc) from exc

    body = b"".join(chunks)
    # Same cache Request.body() fills; BaseHTTPMiddleware replays it downstream.
    request._body = body
    return body


class HmacAuthMiddleware(BaseHTTPMiddleware):
    """Reject requests that do not carry a valid HMAC header."""

    def __init__(
        self,
        app: ASGIApp,
        authenticator: RequestAuthenticator,
        status_policy: StatusPolicy | None = None,
        exempt_paths: Iterable[str] = (),
        include_query: bool = False,
        max_body_bytes: int | None = DEFAULT_MAX_BODY_BYTES,
    ) -> None:
        super().__init__(app)
        self._authenticator = authenticator
        self._status_policy = status_policy or StatusPolicy()
        self._exempt_paths = set(exempt_paths)
        self._include_query = include_query
        self._max_body_bytes = max_body_bytes

    async def _verify(self, request: Request) -> tuple[AuthOutcome, int | None]:
        try:
            body = await read_body(request, self._max_body_bytes)
        except BodyReadError as exc:
            logger.error("Failed to read request body", error=exc.message, path=request.url.path)
            return authenticate_body_error(), None

        outcome = self._authenticator.authenticate(
            request.headers,
            request.method,
            request_path(request, self._include_query),
            body,
        )
        return outcome, len(body)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self._exempt_paths:
            return await call_next(request)

        outcome, body_size = await self._verify(request)
        request.state.hmac = outcome

        if outcome.reason is None:
            record_auth_outcome("allowed", body_size)
            return await call_next(request)

        record_auth_outcome(outcome.reason.value, body_size)
        logger.warning(
            "HMAC verification failed",
            reason=outcome.reason.value,
            method=request.method,
            path=request.url.path,
        )
        return error_response(
            outcome.reason.value,
            outcome.message,
            status_code=self._status_policy.status_for(outcome.reason),
        )


async def _replay(body: bytes) -> AsyncIterator[bytes]:
    yield body


class HmacSigningMiddleware(BaseHTTPMiddleware):
    """Attach an HMAC of the response body to every response."""

    def __init__(
        self,
        app: ASGIApp,
        signer: ResponseSigner,
        exempt_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self._signer = signer
        self._exempt_paths = set(exempt_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self._exempt_paths:
            return await call_next(request)

        response = await call_next(request)

        # Buffer once; the same bytes are signed and sent.
        chunks = [chunk async for chunk in response.body_iterator]  # type: ignore[attr-defined]
        body = b"".join(chunks)
        response.body_iterator = _replay(body)  # type: ignore[attr-defined]

        response.headers[self._signer.header_name] = self._signer.sign(body)
        record_signed_response(len(body))
        logger.debug("Signed response", path=request.url.path, size=len(body))
        return response


def _checked_key(key: SecretKey) -> SecretKey:
    if not len(key):
        logger.warning("HMAC secret is empty")
    return key


def hmac_middleware(
    secret: SecretKey | str | bytes,
    header_name: str,
    *,
    status_policy: StatusPolicy | None = None,
    backend: DigestBackend | None = None,
    exempt_paths: Iterable[str] = (),
    include_query: bool = False,
    max_body_bytes: int | None = DEFAULT_MAX_BODY_BYTES,
) -> tuple[Middleware, Middleware]:
    """
    Build the verification and signing stages sharing one secret and header.

    Pass the pair in order to ``Starlette(middleware=[...])`` so that
    verification runs outermost and rejected requests are never signed.
    """
    key = _checked_key(SecretKey.coerce(secret))
    backend = backend or get_backend()
    exempt = tuple(exempt_paths)

    before = Middleware(
        HmacAuthMiddleware,
        authenticator=RequestAuthenticator(key, header_name, backend),
        status_policy=status_policy,
        exempt_paths=exempt,
        include_query=include_query,
        max_body_bytes=max_body_bytes,
    )
    after = Middleware(
        HmacSigningMiddleware,
        signer=ResponseSigner(key, header_name, backend),
        exempt_paths=exempt,
    )
    return before, after


def install_hmac(app: Starlette, settings: Settings) -> None:
    """Add both HMAC stages to an application using configured settings."""
    key = _checked_key(settings.secret_key())
    backend = get_backend(settings.hmac_backend)

    # add_middleware prepends, so the signing stage goes in first.
    app.add_middleware(
        HmacSigningMiddleware,
        signer=ResponseSigner(key, settings.hmac_header, backend),
        exempt_paths=settings.hmac_exempt_paths,
    )
    app.add_middleware(
        HmacAuthMiddleware,
        authenticator=RequestAuthenticator(key, settings.hmac_header, backend),
        status_policy=settings.status_policy(),
        exempt_paths=settings.hmac_exempt_paths,
        include_query=settings.hmac_include_query,
        max_body_bytes=settings.max_body_bytes,
    )
    logger.info(
        "HMAC middleware installed",
        header=settings.hmac_header,
        backend=backend.name,
    )
