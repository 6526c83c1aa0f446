"""Pytest configuration and fixtures."""

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from hmacguard.common.settings import Settings
from hmacguard.core.keys import SecretKey

# Reference values for secret "rust :)" and header "x-hmac".
SECRET = "rust :)"
HEADER = "x-hmac"
HELLO_BODY = "Hello, world!"


@pytest.fixture
def secret() -> SecretKey:
    """Shared test secret."""
    return SecretKey.from_text(SECRET)


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        hmac_secret=SECRET,
        hmac_header=HEADER,
        hmac_exempt_paths=("/health",),
    )


async def hello(_request: Request) -> PlainTextResponse:
    return PlainTextResponse(HELLO_BODY)


async def echo(request: Request) -> Response:
    return Response(await request.body(), media_type="application/octet-stream")


async def health(_request: Request) -> PlainTextResponse:
    return PlainTextResponse("healthy")


@pytest.fixture
def routes() -> list[Route]:
    """Routes shared by middleware tests."""
    return [
        Route("/", hello, methods=["GET", "POST"]),
        Route("/echo", echo, methods=["POST", "PUT"]),
        Route("/health", health),
    ]


@pytest.fixture
def bare_app(routes) -> Starlette:
    """Application without middleware."""
    return Starlette(routes=routes)
