"""Hello-world server wrapped in HMAC verification and signing."""

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
import uvicorn

from hmacguard.common.logging import get_logger, setup_logging
from hmacguard.common.metrics import metrics_endpoint
from hmacguard.common.settings import Settings, get_settings
from hmacguard.middleware import install_hmac

logger = get_logger(__name__)

GREETING = "Hello, world!"
METRICS_PATH = "/metrics"


async def hello(_request: Request) -> PlainTextResponse:
    return PlainTextResponse(GREETING)


def create_app(settings: Settings) -> Starlette:
    """Create the demo application; every path answers with the greeting."""
    methods = ["GET", "POST", "PUT", "PATCH", "DELETE"]
    app = Starlette(
        routes=[
            Route(METRICS_PATH, metrics_endpoint, methods=["GET"]),
            Route("/", hello, methods=methods),
            Route("/{path:path}", hello, methods=methods),
        ]
    )

    if METRICS_PATH not in settings.hmac_exempt_paths:
        settings = settings.model_copy(
            update={"hmac_exempt_paths": (*settings.hmac_exempt_paths, METRICS_PATH)}
        )
    install_hmac(app, settings)
    return app


def main() -> None:
    """Entry point for the demo server."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)
    app = create_app(settings)

    logger.info("Starting demo server", host=settings.demo_host, port=settings.demo_port)
    uvicorn.run(
        app,
        host=settings.demo_host,
        port=settings.demo_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
