"""Prometheus metrics for hmacguard observability."""

import os

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)
from starlette.requests import Request
from starlette.responses import Response

# === Counters ===

AUTH_OUTCOMES_TOTAL = Counter(
    "hmacguard_auth_outcomes_total",
    "Request verification outcomes",
    ["outcome"],  # outcome: allowed, missing_header, malformed_header, ...
)

SIGNED_RESPONSES_TOTAL = Counter(
    "hmacguard_signed_responses_total",
    "Total responses signed",
)

# === Histograms ===

BODY_BYTES = Histogram(
    "hmacguard_body_bytes",
    "Size of bodies digested",
    ["stage"],  # stage: request, response
    buckets=[0, 256, 1024, 16384, 131072, 1048576, 10485760],
)


# === Helper Functions ===


def record_auth_outcome(outcome: str, body_size: int | None = None) -> None:
    """Record a verification outcome."""
    AUTH_OUTCOMES_TOTAL.labels(outcome=outcome).inc()
    if body_size is not None:
        BODY_BYTES.labels(stage="request").observe(body_size)


def record_signed_response(body_size: int) -> None:
    """Record a signed response."""
    SIGNED_RESPONSES_TOTAL.inc()
    BODY_BYTES.labels(stage="response").observe(body_size)


# === HTTP Endpoint ===


async def metrics_endpoint(_request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    multiproc_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if multiproc_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)  # type: ignore[no-untyped-call]
        return Response(
            generate_latest(registry),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return Response(
        generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
