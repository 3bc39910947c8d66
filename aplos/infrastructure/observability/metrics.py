"""Prometheus metrics for token handshakes and API request performance"""

from prometheus_client import Counter, Histogram

# Auth metrics
token_fetch_counter = Counter(
    "aplos_token_fetch_total",
    "Aplos authentication handshakes performed",
    ["outcome"],  # success, or the failing exception class name
)

# Request metrics
request_duration_histogram = Histogram(
    "aplos_request_duration_seconds",
    "Aplos API request latency",
    ["operation", "status"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

request_failures_counter = Counter(
    "aplos_request_failures_total",
    "Failed Aplos API calls",
    ["operation", "kind"],
)


def record_failure(operation: str, error: Exception) -> None:
    """Count a failed call under the exception class name, e.g. DecodeError"""
    request_failures_counter.labels(operation=operation, kind=type(error).__name__).inc()
