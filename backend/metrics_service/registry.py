"""
Prometheus metrics for the gateway.
Each UploadMetrics owns its registry so tests can build isolated instances.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

SUCCESS = "success"
FAIL = "fail"
STATUSES = (SUCCESS, FAIL)

DURATION_BUCKETS_MS = (0.1, 5, 15, 50, 100, 200, 300, 400, 500, 1000, 2000, 5000)

PLACEHOLDER_METRICS = "mock_metrics"


class UploadMetrics:
    def __init__(self, registry: CollectorRegistry = None, default_collectors: bool = True):
        self.registry = registry or CollectorRegistry()

        if default_collectors:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

        self.http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request duration in milliseconds",
            ["method", "route", "code"],
            buckets=DURATION_BUCKETS_MS,
            registry=self.registry,
        )
        self.image_upload_total = Counter(
            "image_upload_total",
            "Total number of uploaded images",
            ["status"],
            registry=self.registry,
        )
        self.ai_api_call_total = Counter(
            "ai_api_call_total",
            "Total number of calls to the AI API",
            ["status"],
            registry=self.registry,
        )

        # Expose both series at 0 before the first request.
        for status in STATUSES:
            self.image_upload_total.labels(status)
            self.ai_api_call_total.labels(status)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def record_upload(self, status: str) -> None:
        self.image_upload_total.labels(status).inc()

    def record_ai_call(self, status: str) -> None:
        self.ai_api_call_total.labels(status).inc()

    def observe_request(self, method: str, route: str, code: int, elapsed_ms: float) -> None:
        self.http_request_duration_ms.labels(method, route, str(code)).observe(elapsed_ms)

    def render(self) -> bytes:
        """Text exposition of every metric in this registry."""
        return generate_latest(self.registry)


class NullMetrics:
    """Drop-in for UploadMetrics in test mode: records nothing."""

    content_type = "text/plain; charset=utf-8"

    def record_upload(self, status: str) -> None:
        pass

    def record_ai_call(self, status: str) -> None:
        pass

    def observe_request(self, method: str, route: str, code: int, elapsed_ms: float) -> None:
        pass

    def render(self) -> bytes:
        return PLACEHOLDER_METRICS.encode("utf-8")
