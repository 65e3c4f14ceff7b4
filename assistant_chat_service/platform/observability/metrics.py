"""Prometheus metrics collection and HTTP middleware.

This module provides Prometheus metrics integration including HTTP request
duration histograms and counters for assistant runs and tool calls.
"""

from time import monotonic
from typing import NamedTuple

import prometheus_client


class HTTPLabels(NamedTuple):
    method: str
    path: str
    http_status: str


class RunLabels(NamedTuple):
    strategy: str
    status: str


class ToolCallLabels(NamedTuple):
    tool: str
    outcome: str


_NXX_LUT = ["1XX", "2XX", "3XX", "4XX", "5XX"]


def http_status_nxx(status: int) -> str:
    """A coarser 2XX, 4XX, 5XX"""
    return _NXX_LUT[status // 100 - 1]


BUCKETS = (
    # these are log spaced with 1 sig-fig rounding so there are 3 per decade
    0.0002,  # 200 μs
    0.0005,
    0.001,  # 1 ms
    0.002,
    0.005,
    0.01,
    0.02,
    0.05,
    0.1,
    0.2,
    0.5,
    1,
    2,
    5,
    10,
    20,
    50,
    100,  # a full polling budget is 45 attempts at 2s
    float("inf"),
)

# Re-fetches per run; default budget is 45.
POLL_ATTEMPT_BUCKETS = (0, 1, 2, 5, 10, 20, 30, 45, 60, 100, float("inf"))


def get_path(routes, scope) -> str:
    """Extract the matched route path from a request scope.

    Args:
        routes: List of FastAPI/Starlette route objects
        scope: ASGI request scope dictionary

    Returns:
        The matched route path template, or "path-not-found" if no match
    """
    path = "path-not-found"
    for route in routes:
        _, matches = route.matches(scope)
        if len(matches) > 0:
            path = route.path
    return path


async def prometheus_middleware(request, call_next):
    """HTTP middleware that records request duration metrics.

    For streaming responses this measures the time to the first byte of the
    response, not the full session.

    Args:
        request: The incoming HTTP request
        call_next: The next middleware/handler in the chain

    Returns:
        The HTTP response from the downstream handler
    """
    start_time = monotonic()
    response = await call_next(request)
    elapsed_sec = monotonic() - start_time
    path = get_path(request.app.routes, request.scope)

    labels = HTTPLabels(
        method=request.method,
        path=path,
        http_status=http_status_nxx(response.status_code),
    )
    http_histogram.labels(*labels).observe(elapsed_sec)

    return response


def setup_metrics_factory(registry, name, documentation, labelnames, buckets=BUCKETS):
    """Create a Prometheus histogram with standard bucket configuration.

    Args:
        registry: Prometheus registry to register the metric with
        name: Metric name (e.g., "http_request_duration_seconds")
        documentation: Human-readable metric description
        labelnames: Tuple of label names for the histogram
        buckets: Histogram bucket upper bounds

    Returns:
        Configured Prometheus Histogram instance
    """
    prom_histogram = prometheus_client.Histogram(
        name=name,
        documentation=documentation,
        labelnames=labelnames,
        registry=registry,
        buckets=buckets,
    )

    return prom_histogram


def setup_http_metrics(registry):
    """Create the HTTP request duration histogram."""
    return setup_metrics_factory(
        registry,
        name="http_request_duration_seconds",
        documentation="Request duration (seconds)",
        labelnames=HTTPLabels._fields,
    )


def setup_run_metrics(registry):
    """Create the assistant run and tool call metrics.

    Args:
        registry: Prometheus registry to register the metrics with

    Returns:
        Tuple of (runs counter, tool calls counter, poll attempts histogram)
    """
    runs = prometheus_client.Counter(
        name="assistant_runs_total",
        documentation="Assistant runs by completion strategy and final status",
        labelnames=RunLabels._fields,
        registry=registry,
    )
    tool_calls = prometheus_client.Counter(
        name="assistant_tool_calls_total",
        documentation="Tool calls dispatched for runs, by tool and outcome",
        labelnames=ToolCallLabels._fields,
        registry=registry,
    )
    poll_attempts = prometheus_client.Histogram(
        name="assistant_poll_attempts",
        documentation="Status re-fetches performed per polled run",
        registry=registry,
        buckets=POLL_ATTEMPT_BUCKETS,
    )
    return runs, tool_calls, poll_attempts


http_histogram = setup_http_metrics(registry=prometheus_client.REGISTRY)
RUNS, TOOL_CALLS, POLL_ATTEMPTS = setup_run_metrics(registry=prometheus_client.REGISTRY)


def metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics output for the /metrics endpoint.

    Returns:
        Tuple of (metrics_body, content_type) for the HTTP response
    """
    return (
        prometheus_client.generate_latest(prometheus_client.REGISTRY),
        prometheus_client.CONTENT_TYPE_LATEST,
    )
