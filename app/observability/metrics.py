from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    GC_COLLECTOR,
    PLATFORM_COLLECTOR,
    PROCESS_COLLECTOR,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

DURATION_BUCKETS = (0.1, 0.3, 0.5, 0.7, 1, 3, 5, 7, 10)


class MetricsRegistry:
    """Process-wide HTTP metrics rendered in Prometheus text format.

    Each instance owns its own CollectorRegistry so tests can start from a
    clean slate. The default process/platform/GC collectors are attached as
    well, which gives scrapers memory and CPU figures for the leak and CPU
    endpoints.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, include_default_collectors: bool = True) -> None:
        self.registry = CollectorRegistry(auto_describe=True)
        if include_default_collectors:
            for collector in (PROCESS_COLLECTOR, PLATFORM_COLLECTOR, GC_COLLECTOR):
                self.registry.register(collector)

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            ["method", "route", "status_code"],
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            ["method", "route", "status_code"],
            registry=self.registry,
        )
        self.errors_total = Counter(
            "app_errors_total",
            "Total number of application errors",
            ["route", "error_type"],
            registry=self.registry,
        )

    def observe_duration(self, method: str, route: str, status: int | str, seconds: float) -> None:
        self.request_duration.labels(method, route, str(status)).observe(seconds)

    def increment_request(self, method: str, route: str, status: int | str) -> None:
        self.requests_total.labels(method, route, str(status)).inc()

    def increment_error(self, route: str, error_type: str) -> None:
        self.errors_total.labels(route, error_type).inc()

    def render(self) -> str:
        return generate_latest(self.registry).decode("utf-8")


_METRICS: MetricsRegistry | None = None


def get_metrics() -> MetricsRegistry:
    global _METRICS
    if _METRICS is None:
        _METRICS = MetricsRegistry()
    return _METRICS


def reset_metrics() -> None:
    """Replace the registry with a fresh one (used by tests)."""

    global _METRICS
    _METRICS = MetricsRegistry()
