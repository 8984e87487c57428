"""Prometheus metrics helpers for HTTP and domain observability."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from time import perf_counter

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

HTTP_REQUESTS_TOTAL = Counter(
    "tutordesk_http_requests_total",
    "Total number of HTTP requests handled by the API.",
    ["method", "path", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "tutordesk_http_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

TUTORING_ACTIONS_TOTAL = Counter(
    "tutordesk_tutoring_actions_total",
    "Tutoring lifecycle actions by outcome (success or failure code).",
    ["action", "outcome"],
)

REMINDERS_SENT_TOTAL = Counter(
    "tutordesk_reminders_sent_total",
    "Automatic tutor reminders emitted by the reminder sweep.",
    ["kind"],
)

REMINDER_SWEEP_DURATION_SECONDS = Histogram(
    "tutordesk_reminder_sweep_duration_seconds",
    "Duration of one reminder sweep in seconds.",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

REMINDER_SWEEP_FAILURES_TOTAL = Counter(
    "tutordesk_reminder_sweep_failures_total",
    "Reminder sweeps that raised and were skipped.",
)

NOTIFICATIONS_DROPPED_TOTAL = Counter(
    "tutordesk_notifications_dropped_total",
    "Notifications that could not be recorded and were dropped.",
    ["type"],
)


def _request_path_label(request: Request) -> str:
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    if route_path:
        return str(route_path)
    return request.url.path


async def instrument_http_request(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Track request count and latency for each endpoint."""
    started_at = perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        path_label = _request_path_label(request)
        method_label = request.method.upper()
        duration_seconds = perf_counter() - started_at

        HTTP_REQUESTS_TOTAL.labels(
            method=method_label,
            path=path_label,
            status_code=str(status_code),
        ).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(
            method=method_label,
            path=path_label,
        ).observe(duration_seconds)


def build_metrics_response() -> Response:
    """Return metrics payload in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
